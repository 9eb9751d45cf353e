# FILE: architect/pipeline/__init__.py
"""Refine/specify pipeline, bounded waits and cancellation."""

from .deadline import CancellationToken, run_bounded
from .orchestrator import PipelineOrchestrator, PipelineResult

__all__ = [
    "CancellationToken",
    "run_bounded",
    "PipelineOrchestrator",
    "PipelineResult",
]
