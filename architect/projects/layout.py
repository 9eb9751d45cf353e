# FILE: architect/projects/layout.py
"""
Canonical path layout of a project inside its remote location.

    .architectai/project.json
    versions/<version-id>/version.json
    versions/<version-id>/diagrams/<diagram-id>.png
    versions/<version-id>/refined/refined.png
    specs/latest-specs.json
    specs/v<sequence-number>.md
"""
from __future__ import annotations

PROJECT_RECORD_PATH = ".architectai/project.json"
VERSIONS_DIR = "versions"
SPECS_DIR = "specs"
LATEST_SPECS_PATH = f"{SPECS_DIR}/latest-specs.json"
REFINED_FILENAME = "refined.png"
VERSION_RECORD_FILENAME = "version.json"


def version_dir(version_id: str) -> str:
    return f"{VERSIONS_DIR}/{version_id}"


def version_record_path(version_id: str) -> str:
    return f"{version_dir(version_id)}/{VERSION_RECORD_FILENAME}"


def diagram_filename(diagram_id: str) -> str:
    return f"{diagram_id}.png"


def diagram_path(version_id: str, filename: str) -> str:
    return f"{version_dir(version_id)}/diagrams/{filename}"


def refined_path(version_id: str, filename: str = REFINED_FILENAME) -> str:
    return f"{version_dir(version_id)}/refined/{filename}"


def build_plan_path(sequence_number: int) -> str:
    return f"{SPECS_DIR}/v{sequence_number}.md"
