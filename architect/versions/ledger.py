# FILE: architect/versions/ledger.py
"""
In-memory, append-only version history for the open project.

The ledger is the single source of truth the UI reads. Pipeline progress and
reconciliation both go through it; it never persists anything and never calls
out.

INVARIANTS:
    - Sequence numbers are assigned at creation, start at 1 and strictly increase
    - id, sequence_number, created_at and diagrams never change after creation
    - Populated artifact fields are never reset to empty by a patch
    - Updates for unknown ids are silently ignored (late callbacks after close)
    - Status only moves along STATUS_TRANSITIONS; complete and error are final

Concurrency: all mutation happens on one asyncio event loop, and no method
awaits, so updates are atomic with respect to each other. A port to threads
needs a lock around _versions.
"""
from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
from uuid import uuid4

from architect.versions.models import (
    IMMUTABLE_FIELDS,
    PATCHABLE_FIELDS,
    ComponentSpec,
    Diagram,
    Version,
    VersionStatus,
    can_transition,
    copy_diagrams,
    is_terminal,
)

logger = logging.getLogger(__name__)


def new_version_id() -> str:
    return f"v-{int(time.time() * 1000)}-{uuid4().hex[:6]}"


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (bytes, str, tuple, list)) and len(value) == 0:
        return True
    return False


class VersionLedger:
    """Ordered collection of Versions for one open project."""

    def __init__(self) -> None:
        self._versions: List[Version] = []

    @classmethod
    def from_history(cls, versions: Iterable[Version]) -> "VersionLedger":
        """Seed a ledger with reconciled history, ordered by sequence number."""
        ledger = cls()
        ledger._versions = sorted(versions, key=lambda v: v.sequence_number)
        return ledger

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def create_version(self, diagrams: Sequence[Diagram]) -> Version:
        """Append a pending Version holding a value copy of the diagrams."""
        version = Version(
            id=new_version_id(),
            sequence_number=self._next_sequence_number(),
            diagrams=copy_diagrams(diagrams),
        )
        self._versions.append(version)
        logger.info(f"[ledger] Created version {version.sequence_number} ({version.id})")
        return version

    def update_version(self, version_id: str, **patch: Any) -> Optional[Version]:
        """
        Merge patch fields into the Version with this id.

        Returns the updated snapshot, or None when the id is unknown. A patch
        carrying an illegal status change is dropped whole and the current
        snapshot returned. Raises ValueError for immutable or unknown field names.
        """
        illegal = set(patch) & IMMUTABLE_FIELDS
        if illegal:
            raise ValueError(f"Cannot patch immutable version fields: {sorted(illegal)}")
        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown version fields: {sorted(unknown)}")

        index = self._index_of(version_id)
        if index is None:
            logger.debug(f"[ledger] Ignoring update for unknown version {version_id}")
            return None

        current = self._versions[index]
        status = patch.get("status")
        if status is not None:
            status = VersionStatus(status)
            if status != current.status and not can_transition(current.status, status):
                logger.warning(
                    f"[ledger] Ignoring {current.status.value} -> {status.value} "
                    f"for version {current.sequence_number} ({version_id})"
                )
                return current

        changes: Dict[str, Any] = {}
        for name, value in patch.items():
            if name == "status":
                if value is not None:
                    changes["status"] = VersionStatus(value)
                continue
            if name == "specs" and value is not None:
                value = tuple(value)
            if _is_empty(value) and not _is_empty(getattr(current, name)):
                continue
            changes[name] = value

        if not changes:
            return current

        updated = replace(current, **changes)
        self._versions[index] = updated
        return updated

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_version(self, version_id: str) -> Optional[Version]:
        index = self._index_of(version_id)
        return self._versions[index] if index is not None else None

    def get_latest(self) -> Optional[Version]:
        return self._versions[-1] if self._versions else None

    def get_latest_complete(self) -> Optional[Version]:
        for version in reversed(self._versions):
            if version.status == VersionStatus.COMPLETE:
                return version
        return None

    def status_counts(self) -> Dict[VersionStatus, int]:
        counts: Dict[VersionStatus, int] = {}
        for version in self._versions:
            counts[version.status] = counts.get(version.status, 0) + 1
        return counts

    @property
    def is_processing(self) -> bool:
        return any(not is_terminal(v.status) for v in self._versions)

    @property
    def versions(self) -> Tuple[Version, ...]:
        return tuple(self._versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __iter__(self) -> Iterator[Version]:
        return iter(tuple(self._versions))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _next_sequence_number(self) -> int:
        if not self._versions:
            return 1
        return max(v.sequence_number for v in self._versions) + 1

    def _index_of(self, version_id: str) -> Optional[int]:
        for i, version in enumerate(self._versions):
            if version.id == version_id:
                return i
        return None


def replace_spec_note(specs: Sequence[ComponentSpec], spec_id: str, text: str) -> Tuple[ComponentSpec, ...]:
    """Return specs with one spec's user notes replaced."""
    return tuple(s.with_notes(text) if s.id == spec_id else s for s in specs)


__all__ = ["VersionLedger", "new_version_id", "replace_spec_note"]
