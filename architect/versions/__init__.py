# FILE: architect/versions/__init__.py
"""Version models and the in-memory version ledger."""

from .ledger import VersionLedger, new_version_id, replace_spec_note
from .models import (
    STATUS_TRANSITIONS,
    ComponentSpec,
    Diagram,
    DiagramKind,
    Version,
    VersionStatus,
    can_transition,
    is_terminal,
)

__all__ = [
    "VersionLedger",
    "new_version_id",
    "replace_spec_note",
    "STATUS_TRANSITIONS",
    "ComponentSpec",
    "Diagram",
    "DiagramKind",
    "Version",
    "VersionStatus",
    "can_transition",
    "is_terminal",
]
