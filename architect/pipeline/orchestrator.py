# FILE: architect/pipeline/orchestrator.py
"""
Pipeline orchestrator: drives one Version through refine -> specify.

State machine:
    pending -> refining -> specifying -> complete
    pending | refining | specifying -> error

The orchestrator owns no Version state. It reports every transition through the
on_transition callback (the session writes it into the ledger) and returns a
PipelineResult. Each external call is made at most once per run; there is no
automatic retry. A retry is a new Version.

Build-plan generation is a separate operation with its own timeout. Caching the
plan on a Version is the caller's concern.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple
from uuid import uuid4

from architect.config import ArchitectConfig
from architect.errors import (
    ArchitectError,
    ErrorType,
    ExternalServiceError,
    error_type_of,
)
from architect.llm.services import DiagramServices
from architect.pipeline.deadline import CancellationToken, run_bounded
from architect.versions.models import ComponentSpec, VersionStatus

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[VersionStatus, Optional[str]], None]


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class PipelineResult:
    """Outcome of a pipeline run or a build-plan generation."""
    success: bool
    refined_image: Optional[bytes] = None
    specs: List[ComponentSpec] = field(default_factory=list)
    build_plan: Optional[str] = None
    error_type: Optional[ErrorType] = None
    error_message: Optional[str] = None
    failed_stage: Optional[VersionStatus] = None

    @classmethod
    def failure(
        cls,
        error_type: ErrorType,
        message: str,
        stage: Optional[VersionStatus] = None,
    ) -> "PipelineResult":
        return cls(success=False, error_type=error_type, error_message=message, failed_stage=stage)


def new_spec_id() -> str:
    return f"comp-{uuid4().hex[:12]}"


def usable_images(images: Sequence[Optional[bytes]]) -> List[bytes]:
    """Drop missing or empty sketch payloads."""
    return [bytes(img) for img in images if img]


def _classify(exc: Exception) -> Tuple[ErrorType, str]:
    if isinstance(exc, ArchitectError):
        return error_type_of(exc), str(exc)
    # A service implementation that leaks a raw exception still failed externally.
    return ErrorType.EXTERNAL_SERVICE_ERROR, str(exc) or exc.__class__.__name__


# =============================================================================
# ORCHESTRATOR
# =============================================================================

class PipelineOrchestrator:
    """Runs the two-stage pipeline against a DiagramServices implementation."""

    def __init__(self, services: DiagramServices, config: Optional[ArchitectConfig] = None):
        self.services = services
        self.config = config or ArchitectConfig()

    async def process(
        self,
        images: Sequence[Optional[bytes]],
        on_transition: TransitionCallback,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        sketches = usable_images(images)
        if not sketches:
            logger.info("[pipeline] Rejected run: no usable sketch")
            return PipelineResult.failure(ErrorType.VALIDATION_ERROR, "At least one non-empty sketch is required")

        stage = VersionStatus.REFINING
        try:
            on_transition(VersionStatus.REFINING, None)
            logger.info(f"[pipeline] Refining {len(sketches)} sketch(es)")
            refined = await run_bounded(
                self.services.refine_sketches(sketches),
                timeout_s=self.config.refine_timeout_s,
                token=cancel_token,
                label="Refinement",
            )
            if not refined:
                raise ExternalServiceError("Refinement returned an empty image")

            stage = VersionStatus.SPECIFYING
            on_transition(VersionStatus.SPECIFYING, None)
            logger.info(f"[pipeline] Extracting components ({len(refined)} bytes)")
            suggestions = await run_bounded(
                self.services.analyze_components(refined),
                timeout_s=self.config.analyze_timeout_s,
                token=cancel_token,
                label="Component analysis",
            )
        except Exception as e:
            error_type, message = _classify(e)
            if not isinstance(e, ArchitectError):
                logger.exception(f"[pipeline] Unexpected failure while {stage.value}")
            else:
                logger.warning(f"[pipeline] {stage.value} failed ({error_type.value}): {message}")
            on_transition(VersionStatus.ERROR, message)
            return PipelineResult.failure(error_type, message, stage)

        specs = [
            ComponentSpec(id=new_spec_id(), name=s.name, description=s.description, user_notes="")
            for s in suggestions
        ]
        on_transition(VersionStatus.COMPLETE, None)
        logger.info(f"[pipeline] Complete with {len(specs)} component(s)")
        return PipelineResult(success=True, refined_image=refined, specs=specs)

    async def generate_build_plan(
        self,
        refined_image: Optional[bytes],
        specs: Sequence[ComponentSpec],
        cancel_token: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        if not refined_image:
            return PipelineResult.failure(ErrorType.VALIDATION_ERROR, "Version has no refined image")

        try:
            plan = await run_bounded(
                self.services.generate_build_plan(refined_image, list(specs)),
                timeout_s=self.config.build_plan_timeout_s,
                token=cancel_token,
                label="Build plan",
            )
            if not plan or not plan.strip():
                raise ExternalServiceError("Build plan is empty")
        except Exception as e:
            error_type, message = _classify(e)
            if not isinstance(e, ArchitectError):
                logger.exception("[pipeline] Unexpected build plan failure")
            else:
                logger.warning(f"[pipeline] Build plan failed ({error_type.value}): {message}")
            return PipelineResult.failure(error_type, message)

        logger.info(f"[pipeline] Build plan generated ({len(plan)} chars)")
        return PipelineResult(success=True, refined_image=refined_image, specs=list(specs), build_plan=plan)


__all__ = [
    "PipelineResult",
    "PipelineOrchestrator",
    "TransitionCallback",
    "new_spec_id",
    "usable_images",
]
