# FILE: architect/session.py
"""
ArchitectSession: the command surface a UI drives.

One session holds at most one open project and that project's VersionLedger.
Commands return CommandResult instead of raising. Pipelines run as background
asyncio tasks; each captures the ledger it was started against, so a late
transition after close_project() lands on the discarded ledger and never on a
newly opened one.

Persistence is best-effort: a failed save is logged and reported in the
result's save_report, and retry_save() can repeat it. In-memory state is never
rolled back because of a store failure.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from architect.config import ArchitectConfig, load_config
from architect.errors import ArchitectError, ErrorType, error_type_of
from architect.llm.services import DiagramServices
from architect.pipeline.deadline import CancellationToken
from architect.pipeline.orchestrator import PipelineOrchestrator, PipelineResult, usable_images
from architect.projects import local_state
from architect.projects.models import Project
from architect.projects.repository import ProjectRepository, SaveReport
from architect.storage.hosts import RemoteHost, RemoteLocation
from architect.versions.ledger import VersionLedger, replace_spec_note
from architect.versions.models import Diagram, Version, VersionStatus

logger = logging.getLogger(__name__)


# =============================================================================
# COMMAND RESULT
# =============================================================================

@dataclass
class CommandResult:
    """Typed outcome of one session command."""
    success: bool
    value: Any = None
    error_type: Optional[ErrorType] = None
    error_message: Optional[str] = None
    save_report: Optional[SaveReport] = None

    @classmethod
    def ok(cls, value: Any = None, save_report: Optional[SaveReport] = None) -> "CommandResult":
        return cls(success=True, value=value, save_report=save_report)

    @classmethod
    def fail(cls, error_type: ErrorType, message: str) -> "CommandResult":
        return cls(success=False, error_type=error_type, error_message=message)

    @classmethod
    def from_exception(cls, exc: Exception) -> "CommandResult":
        return cls.fail(error_type_of(exc), str(exc) or exc.__class__.__name__)


# =============================================================================
# SESSION
# =============================================================================

class ArchitectSession:
    def __init__(
        self,
        host: RemoteHost,
        services: DiagramServices,
        config: Optional[ArchitectConfig] = None,
        repository: Optional[ProjectRepository] = None,
        orchestrator: Optional[PipelineOrchestrator] = None,
    ):
        self.config = config or load_config()
        self.host = host
        self.repository = repository or ProjectRepository(host)
        self.orchestrator = orchestrator or PipelineOrchestrator(services, self.config)

        self.project: Optional[Project] = None
        self.ledger: Optional[VersionLedger] = None

        self._tasks: Dict[str, asyncio.Task] = {}
        self._tokens: Dict[str, CancellationToken] = {}
        self._plan_tasks: Dict[str, asyncio.Task] = {}
        self.save_reports: Dict[str, SaveReport] = {}

    # ------------------------------------------------------------------
    # Project lifecycle
    # ------------------------------------------------------------------

    async def create_project(self, name: str, description: str = "", private: bool = True) -> CommandResult:
        if not name or not name.strip():
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, "Project name is required")
        try:
            project = await self.repository.create_project(name.strip(), description, private)
        except ArchitectError as e:
            logger.warning(f"[session] create_project failed: {e}")
            return CommandResult.from_exception(e)
        self._activate(project, VersionLedger())
        return CommandResult.ok(project)

    async def open_project(self, location: RemoteLocation) -> CommandResult:
        try:
            project, ledger = await self.repository.load_project(location)
        except ArchitectError as e:
            logger.warning(f"[session] open_project {location.full_name} failed: {e}")
            return CommandResult.from_exception(e)
        self._activate(project, ledger)
        return CommandResult.ok(project)

    async def restore_project(self) -> CommandResult:
        """Reopen the project remembered from the previous run, if any."""
        stored = local_state.get_stored_project(self.config.data_dir)
        if stored is None:
            return CommandResult.ok(None)
        return await self.open_project(stored.location)

    async def list_projects(self) -> CommandResult:
        try:
            return CommandResult.ok(await self.host.list_locations())
        except ArchitectError as e:
            return CommandResult.from_exception(e)

    async def close_project(self) -> CommandResult:
        for key, token in self._tokens.items():
            token.cancel(f"Project closed ({key})")
        self._tokens.clear()
        closed = self.project
        self.project = None
        self.ledger = None
        try:
            local_state.clear_project(self.config.data_dir)
        except OSError as e:
            logger.warning(f"[session] Could not clear local project state: {e}")
        if closed is not None:
            logger.info(f"[session] Closed project {closed.id}")
        return CommandResult.ok(None)

    def _activate(self, project: Project, ledger: VersionLedger) -> None:
        if self.project is not None:
            for token in self._tokens.values():
                token.cancel("Another project was opened")
            self._tokens.clear()
        self.project = project
        self.ledger = ledger
        self._remember(project)
        logger.info(f"[session] Active project {project.id} ({project.location.full_name}), {len(ledger)} version(s)")

    def _remember(self, project: Project) -> None:
        try:
            local_state.store_project(project, self.config.data_dir)
        except OSError as e:
            logger.warning(f"[session] Could not store local project state: {e}")

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    async def create_version(self, diagrams: Sequence[Diagram]) -> CommandResult:
        """Snapshot the sketches as a new pending Version and start its pipeline."""
        if self.ledger is None or self.project is None:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, "No project is open")
        usable = [d for d in diagrams if d.has_image]
        if not usable_images([d.image for d in usable]):
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, "Please draw something first.")

        ledger, project = self.ledger, self.project
        version = ledger.create_version(usable)
        token = CancellationToken()
        self._tokens[version.id] = token
        task = asyncio.create_task(self._run_pipeline(ledger, project, version, token))
        self._tasks[version.id] = task
        task.add_done_callback(lambda _t, vid=version.id: self._tasks.pop(vid, None))
        return CommandResult.ok(version)

    async def regenerate(self, version_id: str) -> CommandResult:
        """New Version from an existing Version's diagram snapshot."""
        version = self.ledger.get_version(version_id) if self.ledger else None
        if version is None:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, f"Unknown version {version_id}")
        return await self.create_version(version.diagrams)

    async def _run_pipeline(
        self,
        ledger: VersionLedger,
        project: Project,
        version: Version,
        token: CancellationToken,
    ) -> PipelineResult:
        def on_transition(status: VersionStatus, error: Optional[str] = None) -> None:
            ledger.update_version(version.id, status=status, error=error)
            logger.info(f"[session] Version {version.sequence_number} -> {status.value}")

        try:
            result = await self.orchestrator.process(
                [d.image for d in version.diagrams], on_transition, cancel_token=token
            )
        except Exception as e:
            logger.exception(f"[session] Pipeline crashed for {version.id}")
            ledger.update_version(version.id, status=VersionStatus.ERROR, error=str(e))
            return PipelineResult.failure(ErrorType.INTERNAL_ERROR, str(e))
        finally:
            if self._tokens.get(version.id) is token:
                del self._tokens[version.id]

        if not result.success:
            current = ledger.get_version(version.id)
            if current is not None and not current.is_terminal:
                ledger.update_version(version.id, status=VersionStatus.ERROR, error=result.error_message)
            return result

        updated = ledger.update_version(version.id, refined_image=result.refined_image, specs=result.specs)
        if updated is not None and ledger is self.ledger:
            await self._save(project, updated)
        return result

    async def wait_for_pipelines(self) -> List[PipelineResult]:
        """Wait for every running pipeline; mostly for tests and shutdown."""
        tasks = list(self._tasks.values())
        if not tasks:
            return []
        results = await asyncio.gather(*tasks, return_exceptions=True)
        return [r for r in results if isinstance(r, PipelineResult)]

    # ------------------------------------------------------------------
    # Build plan and specs
    # ------------------------------------------------------------------

    async def generate_build_plan(self, version_id: str) -> CommandResult:
        """Cached plan if present, otherwise generate, cache on the Version and save."""
        if self.ledger is None or self.project is None:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, "No project is open")
        version = self.ledger.get_version(version_id)
        if version is None:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, f"Unknown version {version_id}")
        if version.build_plan:
            return CommandResult.ok(version.build_plan)
        if version.status != VersionStatus.COMPLETE or not version.refined_image:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, "Version has no refined diagram yet")

        task = self._plan_tasks.get(version_id)
        if task is None:
            task = asyncio.create_task(self._run_build_plan(self.ledger, self.project, version))
            self._plan_tasks[version_id] = task
            task.add_done_callback(lambda _t: self._plan_tasks.pop(version_id, None))
        return await asyncio.shield(task)

    async def _run_build_plan(self, ledger: VersionLedger, project: Project, version: Version) -> CommandResult:
        key = f"{version.id}:build-plan"
        token = CancellationToken()
        self._tokens[key] = token
        try:
            result = await self.orchestrator.generate_build_plan(version.refined_image, version.specs, token)
        finally:
            if self._tokens.get(key) is token:
                del self._tokens[key]

        if not result.success:
            return CommandResult.fail(result.error_type or ErrorType.INTERNAL_ERROR, result.error_message or "")

        updated = ledger.update_version(version.id, build_plan=result.build_plan)
        report = None
        if updated is not None and ledger is self.ledger:
            report = await self._save(project, updated)
        return CommandResult.ok(result.build_plan, save_report=report)

    async def update_spec_note(self, version_id: str, spec_id: str, text: str) -> CommandResult:
        """Edit one spec's user notes in memory; persisted on the next save."""
        version = self.ledger.get_version(version_id) if self.ledger else None
        if version is None:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, f"Unknown version {version_id}")
        if version.get_spec(spec_id) is None:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, f"Unknown spec {spec_id}")
        updated = self.ledger.update_version(version_id, specs=replace_spec_note(version.specs, spec_id, text))
        return CommandResult.ok(updated.get_spec(spec_id))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def retry_save(self, version_id: str) -> CommandResult:
        if self.ledger is None or self.project is None:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, "No project is open")
        version = self.ledger.get_version(version_id)
        if version is None:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, f"Unknown version {version_id}")
        if not version.is_terminal:
            return CommandResult.fail(ErrorType.VALIDATION_ERROR, "Version is still processing")
        report = await self._save(self.project, version)
        if not report.success:
            return CommandResult(
                success=False,
                value=report,
                error_type=report.error_type,
                error_message=report.error_message,
                save_report=report,
            )
        return CommandResult.ok(report, save_report=report)

    async def _save(self, project: Project, version: Version) -> SaveReport:
        report = await self.repository.save_version(project, version)
        self.save_reports[version.id] = report
        if not report.success:
            logger.warning(
                f"[session] Save of version {version.sequence_number} incomplete "
                f"(failed at {report.failed_step}); retry_save() can repeat it"
            )
        elif report.project is not None and self.project is not None and self.project.id == project.id:
            self.project = report.project
            self._remember(report.project)
        return report


__all__ = ["ArchitectSession", "CommandResult"]
