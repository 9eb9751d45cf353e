# FILE: architect/versions/models.py
"""
Version domain models.

Design:
    - Frozen dataclasses: a Version handed out by the ledger is a snapshot, and
      every update produces a new object
    - Diagram payloads are normalised to immutable bytes on copy, so later
      edits to the live sketch can never reach an existing Version
    - to_dict() is a UI/debug view; persisted records live in
      architect.projects.schemas and images in their own files
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple


# =============================================================================
# STATUS
# =============================================================================

class VersionStatus(str, Enum):
    """Pipeline status of one Version."""
    PENDING = "pending"
    REFINING = "refining"
    SPECIFYING = "specifying"
    COMPLETE = "complete"
    ERROR = "error"


# Legal successors of every status. Every member must appear as a key.
STATUS_TRANSITIONS: Dict[VersionStatus, FrozenSet[VersionStatus]] = {
    VersionStatus.PENDING: frozenset({VersionStatus.REFINING, VersionStatus.ERROR}),
    VersionStatus.REFINING: frozenset({VersionStatus.SPECIFYING, VersionStatus.ERROR}),
    VersionStatus.SPECIFYING: frozenset({VersionStatus.COMPLETE, VersionStatus.ERROR}),
    VersionStatus.COMPLETE: frozenset(),
    VersionStatus.ERROR: frozenset(),
}

_TERMINAL: Dict[VersionStatus, bool] = {
    VersionStatus.PENDING: False,
    VersionStatus.REFINING: False,
    VersionStatus.SPECIFYING: False,
    VersionStatus.COMPLETE: True,
    VersionStatus.ERROR: True,
}


def is_terminal(status: VersionStatus) -> bool:
    return _TERMINAL[VersionStatus(status)]


def can_transition(current: VersionStatus, new: VersionStatus) -> bool:
    return VersionStatus(new) in STATUS_TRANSITIONS[VersionStatus(current)]


# =============================================================================
# DIAGRAMS AND SPECS
# =============================================================================

class DiagramKind(str, Enum):
    PRIMARY = "main"
    AUXILIARY = "sub"


@dataclass(frozen=True)
class Diagram:
    """One sketch: the primary architecture drawing or an auxiliary one."""

    id: str
    name: str
    image: Optional[bytes] = None
    kind: DiagramKind = DiagramKind.PRIMARY

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    def copy(self) -> "Diagram":
        image = bytes(self.image) if self.image is not None else None
        return Diagram(id=self.id, name=self.name, image=image, kind=DiagramKind(self.kind))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "kind": DiagramKind(self.kind).value}


@dataclass(frozen=True)
class ComponentSpec:
    """One inferred component plus the user's free-text requirements."""

    id: str
    name: str
    description: str = ""
    user_notes: str = ""

    def with_notes(self, text: str) -> "ComponentSpec":
        return replace(self, user_notes=text)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "user_notes": self.user_notes,
        }


# =============================================================================
# VERSION
# =============================================================================

# Fields fixed at creation; update patches may not touch them.
IMMUTABLE_FIELDS = frozenset({"id", "sequence_number", "created_at", "diagrams"})

PATCHABLE_FIELDS = frozenset({"status", "refined_image", "specs", "build_plan", "error"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Version:
    """One sequence-numbered snapshot of the sketches plus derived artifacts."""

    id: str
    sequence_number: int
    created_at: datetime = field(default_factory=_utcnow)
    status: VersionStatus = VersionStatus.PENDING
    diagrams: Tuple[Diagram, ...] = ()
    refined_image: Optional[bytes] = None
    specs: Tuple[ComponentSpec, ...] = ()
    build_plan: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def get_spec(self, spec_id: str) -> Optional[ComponentSpec]:
        for spec in self.specs:
            if spec.id == spec_id:
                return spec
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sequence_number": self.sequence_number,
            "created_at": self.created_at.isoformat(),
            "status": VersionStatus(self.status).value,
            "diagrams": [d.to_dict() for d in self.diagrams],
            "has_refined_image": self.refined_image is not None,
            "specs": [s.to_dict() for s in self.specs],
            "build_plan": self.build_plan,
            "error": self.error,
        }


def copy_diagrams(diagrams: Iterable[Diagram]) -> Tuple[Diagram, ...]:
    return tuple(d.copy() for d in diagrams)


__all__ = [
    "VersionStatus",
    "STATUS_TRANSITIONS",
    "is_terminal",
    "can_transition",
    "DiagramKind",
    "Diagram",
    "ComponentSpec",
    "Version",
    "IMMUTABLE_FIELDS",
    "PATCHABLE_FIELDS",
    "copy_diagrams",
]
