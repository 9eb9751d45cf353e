# FILE: architect/projects/local_state.py
"""
Remembers the current project between runs.

Stored as <data_dir>/current_project.json. Writes are atomic (temp file in
the same directory, then rename); a missing or unreadable file reads as None.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Optional

from architect.projects.models import Project

logger = logging.getLogger(__name__)

STATE_FILENAME = "current_project.json"


def _state_path(data_dir: str) -> str:
    return os.path.join(data_dir, STATE_FILENAME)


def store_project(project: Project, data_dir: str) -> None:
    os.makedirs(data_dir, exist_ok=True)
    json_str = json.dumps(project.to_dict(), indent=2, ensure_ascii=False)

    fd, tmp_path = tempfile.mkstemp(dir=data_dir, prefix=".current_project_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(json_str)
        os.replace(tmp_path, _state_path(data_dir))
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def get_stored_project(data_dir: str) -> Optional[Project]:
    path = _state_path(data_dir)
    if not os.path.isfile(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return Project.from_dict(json.load(f))
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning(f"[local_state] Ignoring unreadable {path}: {e}")
        return None


def clear_project(data_dir: str) -> None:
    try:
        os.remove(_state_path(data_dir))
    except FileNotFoundError:
        pass


__all__ = ["store_project", "get_stored_project", "clear_project", "STATE_FILENAME"]
