# FILE: architect/projects/repository.py
"""
Project repository: the write path to a project's remote location.

save_version() is a saga of single-file writes in a fixed order:

    a. diagrams          versions/<id>/diagrams/<diagram-id>.png (each with an image)
    b. refined_image     versions/<id>/refined/refined.png       (if present)
    c. version_record    versions/<id>/version.json
    d. latest_specs      specs/latest-specs.json                  (if specs)
    e. build_plan        specs/v<n>.md                            (if build plan)
    f. project_record    .architectai/project.json

Partial-failure policy:
    - The first failing write stops the saga; later steps are not attempted
    - Nothing is rolled back; files written before the failure stay
    - Payload files without a version.json are never read back (the reconciler
      only trusts version.json), so an interrupted save leaves invisible orphans
    - A retry rewrites every step through upsert, so it is safe to repeat
    - latestVersionId is last-writer-wins when two saves race

save_version() reports failures in its SaveReport and never raises, and it
never touches the in-memory ledger.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from architect.errors import ArchitectError, ErrorType, error_type_of
from architect.projects import layout
from architect.projects.models import Project, from_epoch_ms, new_project_id, now_utc, to_epoch_ms
from architect.projects.reconciler import Reconciler
from architect.projects.schemas import (
    DiagramRecord,
    ProjectRecord,
    SpecRecord,
    VersionRecord,
    specs_json_bytes,
)
from architect.storage.hosts import RemoteHost, RemoteLocation
from architect.storage.remote_store import RemoteFileStore
from architect.versions.ledger import VersionLedger
from architect.versions.models import Version, VersionStatus

logger = logging.getLogger(__name__)

REPO_DESCRIPTION_PREFIX = "ArchitectAI Project: "


# =============================================================================
# SAVE REPORT
# =============================================================================

@dataclass
class SaveReport:
    """Outcome of one save_version saga."""
    version_id: str
    success: bool = False
    completed_steps: List[str] = field(default_factory=list)
    written_paths: List[str] = field(default_factory=list)
    failed_step: Optional[str] = None
    failed_path: Optional[str] = None
    error_type: Optional[ErrorType] = None
    error_message: Optional[str] = None
    project: Optional[Project] = None

    def to_dict(self) -> dict:
        return {
            "version_id": self.version_id,
            "success": self.success,
            "completed_steps": list(self.completed_steps),
            "written_paths": list(self.written_paths),
            "failed_step": self.failed_step,
            "failed_path": self.failed_path,
            "error_type": self.error_type.value if self.error_type else None,
            "error_message": self.error_message,
        }


# (step name, [(path, content, commit message)])
_Step = Tuple[str, List[Tuple[str, bytes, str]]]


def build_version_record(version: Version) -> VersionRecord:
    diagrams = [
        DiagramRecord(id=d.id, name=d.name, kind=d.kind, file=layout.diagram_filename(d.id))
        for d in version.diagrams
        if d.has_image
    ]
    return VersionRecord(
        id=version.id,
        version_number=version.sequence_number,
        timestamp=to_epoch_ms(version.created_at),
        status=VersionStatus(version.status),
        diagram_files=[d.file for d in diagrams],
        diagrams=diagrams,
        refined_file=layout.REFINED_FILENAME if version.refined_image else None,
        specs=[SpecRecord.from_spec(s) for s in version.specs],
        build_plan=version.build_plan,
        error=version.error,
    )


def build_project_record(project: Project) -> ProjectRecord:
    return ProjectRecord(
        project_id=project.id,
        project_name=project.name,
        description=project.description,
        created_at=to_epoch_ms(project.created_at),
        updated_at=to_epoch_ms(project.updated_at),
        latest_version_id=project.latest_version_id,
    )


# =============================================================================
# REPOSITORY
# =============================================================================

class ProjectRepository:
    """Maps projects and versions onto the canonical remote layout."""

    def __init__(self, host: RemoteHost, reconciler: Optional[Reconciler] = None):
        self.host = host
        self.reconciler = reconciler or Reconciler()

    def store_for(self, project: Project) -> RemoteFileStore:
        return self.host.open_store(project.location)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def create_project(self, name: str, description: str = "", private: bool = True) -> Project:
        """Create a location, tag it for discovery and write the project record."""
        location = await self.host.create_location(
            name, description=f"{REPO_DESCRIPTION_PREFIX}{description}", private=private
        )
        try:
            await self.host.tag_location(location)
        except ArchitectError as e:
            # The project still works; it just will not show up in list_projects()
            logger.warning(f"[repository] Could not tag {location.full_name}: {e}")

        now = now_utc()
        project = Project(
            id=new_project_id(),
            name=name,
            description=description,
            location=location,
            created_at=now,
            updated_at=now,
        )
        store = self.store_for(project)
        await store.upsert(
            layout.PROJECT_RECORD_PATH,
            build_project_record(project).to_json_bytes(),
            message="Initialize ArchitectAI project",
        )
        logger.info(f"[repository] Initialized project {project.id} at {location.full_name}")
        return project

    async def load_project(self, location: RemoteLocation) -> Tuple[Project, VersionLedger]:
        """Read the project record (fatal if missing or invalid), then reconcile history."""
        store = self.host.open_store(location)
        remote = await store.read(layout.PROJECT_RECORD_PATH)
        record = ProjectRecord.parse_bytes(remote.content, layout.PROJECT_RECORD_PATH)
        project = Project(
            id=record.project_id,
            name=record.project_name,
            description=record.description,
            location=location,
            created_at=from_epoch_ms(record.created_at),
            updated_at=from_epoch_ms(record.updated_at),
            latest_version_id=record.latest_version_id,
        )
        ledger = await self.reconciler.load_versions(store)
        logger.info(f"[repository] Loaded project {project.id} with {len(ledger)} version(s)")
        return project, ledger

    # ------------------------------------------------------------------
    # Save saga
    # ------------------------------------------------------------------

    def plan_save(self, project: Project, version: Version) -> List[_Step]:
        """Ordered steps for save_version; steps with nothing to write are omitted."""
        n = version.sequence_number
        steps: List[_Step] = []

        diagram_writes = [
            (
                layout.diagram_path(version.id, layout.diagram_filename(d.id)),
                bytes(d.image),
                f"Save diagram {d.name}",
            )
            for d in version.diagrams
            if d.has_image
        ]
        if diagram_writes:
            steps.append(("diagrams", diagram_writes))

        if version.refined_image:
            steps.append(("refined_image", [(
                layout.refined_path(version.id),
                bytes(version.refined_image),
                f"Save refined diagram for version {n}",
            )]))

        steps.append(("version_record", [(
            layout.version_record_path(version.id),
            build_version_record(version).to_json_bytes(),
            f"Save version {n} metadata",
        )]))

        if version.specs:
            steps.append(("latest_specs", [(
                layout.LATEST_SPECS_PATH,
                specs_json_bytes(list(version.specs)),
                "Update latest specs",
            )]))

        if version.build_plan:
            steps.append(("build_plan", [(
                layout.build_plan_path(n),
                version.build_plan.encode("utf-8"),
                f"Save build plan for v{n}",
            )]))

        return steps

    async def save_version(self, project: Project, version: Version) -> SaveReport:
        """Persist one version; see the module docstring for the failure policy."""
        report = SaveReport(version_id=version.id)
        updated = project.touched(latest_version_id=version.id)
        steps = self.plan_save(project, version)
        steps.append(("project_record", [(
            layout.PROJECT_RECORD_PATH,
            build_project_record(updated).to_json_bytes(),
            "Update project metadata",
        )]))

        try:
            store = self.store_for(project)
        except ArchitectError as e:
            return self._fail(report, "open_store", project.location.full_name, e)

        for step_name, writes in steps:
            for path, content, message in writes:
                try:
                    await store.upsert(path, content, message=message)
                except Exception as e:
                    return self._fail(report, step_name, path, e)
                report.written_paths.append(path)
            report.completed_steps.append(step_name)

        report.success = True
        report.project = updated
        logger.info(
            f"[repository] Saved version {version.sequence_number} ({version.id}): "
            f"{len(report.written_paths)} file(s)"
        )
        return report

    @staticmethod
    def _fail(report: SaveReport, step: str, path: str, exc: Exception) -> SaveReport:
        report.failed_step = step
        report.failed_path = path
        report.error_type = error_type_of(exc)
        report.error_message = str(exc) or exc.__class__.__name__
        if isinstance(exc, ArchitectError):
            logger.warning(
                f"[repository] Save of {report.version_id} stopped at {step} ({path}): "
                f"{report.error_type.value}: {report.error_message}"
            )
        else:
            logger.exception(f"[repository] Unexpected failure saving {report.version_id} at {step} ({path})")
        return report


__all__ = [
    "ProjectRepository",
    "SaveReport",
    "build_version_record",
    "build_project_record",
]
