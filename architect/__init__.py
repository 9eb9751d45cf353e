# FILE: architect/__init__.py
"""
ArchitectAI core: version lifecycle and remote sync.

Sketches become sequence-numbered Versions, each Version runs a two-stage AI
pipeline (refine, then extract components), and finished Versions are saved to
and reconstructed from a GitHub repository.

Usage:
    from architect import ArchitectSession, GitHubHost, GeminiDiagramService, load_config

    config = load_config()
    session = ArchitectSession(GitHubHost(config), GeminiDiagramService(config), config)
    await session.create_project("Checkout Service", "Payments flow")
"""

from .config import ArchitectConfig, load_config
from .errors import ArchitectError, ErrorType
from .llm import DiagramServices, GeminiDiagramService
from .session import ArchitectSession, CommandResult
from .storage import GitHubHost, InMemoryHost, RemoteLocation
from .versions import ComponentSpec, Diagram, DiagramKind, Version, VersionLedger, VersionStatus

__all__ = [
    "ArchitectConfig",
    "load_config",
    "ArchitectError",
    "ErrorType",
    "DiagramServices",
    "GeminiDiagramService",
    "ArchitectSession",
    "CommandResult",
    "GitHubHost",
    "InMemoryHost",
    "RemoteLocation",
    "ComponentSpec",
    "Diagram",
    "DiagramKind",
    "Version",
    "VersionLedger",
    "VersionStatus",
]
