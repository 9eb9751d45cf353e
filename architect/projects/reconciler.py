# FILE: architect/projects/reconciler.py
"""
Reconciler: rebuilds a VersionLedger from a project's remote location.

Only versions/<id>/version.json is trusted. Every per-version failure (missing
record, malformed JSON, schema violation, transport error) is logged and that
version is skipped; diagram and refined-image files are loaded best-effort and
degrade to "absent". Failing to list versions/ at all propagates, since an
empty history would hand out sequence numbers that already exist remotely.

Ordering comes only from the persisted sequence number.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from architect.errors import ParseError, RemoteStoreError
from architect.projects import layout
from architect.projects.models import from_epoch_ms
from architect.projects.schemas import DiagramRecord, VersionRecord
from architect.storage.remote_store import RemoteFileStore
from architect.versions.ledger import VersionLedger
from architect.versions.models import Diagram, DiagramKind, Version, VersionStatus, is_terminal

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "Processing was interrupted before the version finished ({status})"


def legacy_diagram_records(diagram_files: List[str]) -> List[DiagramRecord]:
    """Descriptors for records that only list file names: position decides kind."""
    records = []
    for index, filename in enumerate(diagram_files):
        diagram_id = filename[:-4] if filename.endswith(".png") else filename
        records.append(DiagramRecord(
            id=diagram_id,
            name="Main Architecture" if index == 0 else f"Sub-Diagram {index}",
            kind=DiagramKind.PRIMARY if index == 0 else DiagramKind.AUXILIARY,
            file=filename,
        ))
    return records


class Reconciler:
    """Read path: remote layout -> VersionLedger."""

    async def load_versions(self, store: RemoteFileStore) -> VersionLedger:
        entries = await store.list(layout.VERSIONS_DIR)
        versions: List[Version] = []
        for entry in entries:
            if not entry.is_directory:
                continue
            version = await self.load_version(store, entry.name)
            if version is not None:
                versions.append(version)

        versions.sort(key=lambda v: (v.sequence_number, v.created_at, v.id))
        numbers = [v.sequence_number for v in versions]
        if len(numbers) != len(set(numbers)):
            logger.warning(f"[reconcile] Duplicate sequence numbers in history: {numbers}")

        logger.info(f"[reconcile] Loaded {len(versions)} of {len(entries)} version entries")
        return VersionLedger.from_history(versions)

    async def load_version(self, store: RemoteFileStore, dirname: str) -> Optional[Version]:
        """One version directory -> Version, or None when its record is unusable."""
        record_path = f"{layout.VERSIONS_DIR}/{dirname}/{layout.VERSION_RECORD_FILENAME}"
        try:
            remote = await store.read(record_path)
            record = VersionRecord.parse_bytes(remote.content, record_path)
            created_at = from_epoch_ms(record.timestamp)
        except (RemoteStoreError, ParseError) as e:
            logger.warning(f"[reconcile] Skipping {dirname}: {e}")
            return None

        descriptors = record.diagrams if record.diagrams is not None else legacy_diagram_records(record.diagram_files)
        images = await asyncio.gather(*(
            self._read_optional(store, f"{layout.VERSIONS_DIR}/{dirname}/diagrams/{d.file}")
            for d in descriptors
        ))
        diagrams = tuple(
            Diagram(id=d.id, name=d.name, image=image, kind=d.kind)
            for d, image in zip(descriptors, images)
        )

        refined = None
        if record.refined_file:
            refined = await self._read_optional(
                store, f"{layout.VERSIONS_DIR}/{dirname}/refined/{record.refined_file}"
            )

        status = VersionStatus(record.status)
        error = record.error
        if not is_terminal(status):
            error = error or INTERRUPTED_MESSAGE.format(status=status.value)
            status = VersionStatus.ERROR

        return Version(
            id=record.id,
            sequence_number=record.version_number,
            created_at=created_at,
            status=status,
            diagrams=diagrams,
            refined_image=refined,
            specs=tuple(s.to_spec() for s in record.specs),
            build_plan=record.build_plan,
            error=error,
        )

    async def _read_optional(self, store: RemoteFileStore, path: str) -> Optional[bytes]:
        try:
            return (await store.read(path)).content
        except RemoteStoreError as e:
            logger.warning(f"[reconcile] Missing payload {path}: {e}")
            return None


__all__ = ["Reconciler", "legacy_diagram_records", "INTERRUPTED_MESSAGE"]
