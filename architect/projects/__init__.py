# FILE: architect/projects/__init__.py
"""
Projects: persisted records, the remote layout, the save saga and the
reconciling read path.
"""

from .models import Project, new_project_id
from .reconciler import Reconciler
from .repository import ProjectRepository, SaveReport
from .schemas import ProjectRecord, VersionRecord

__all__ = [
    "Project",
    "new_project_id",
    "Reconciler",
    "ProjectRepository",
    "SaveReport",
    "ProjectRecord",
    "VersionRecord",
]
