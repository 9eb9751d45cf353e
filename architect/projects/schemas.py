# FILE: architect/projects/schemas.py
"""
Persisted record schemas (camelCase JSON, epoch-millisecond timestamps).

These are the on-disk contract shared with the browser client, so field names
and shapes must stay compatible with files it already wrote. Unknown keys are
ignored; `diagrams` and `error` are optional because older records lack them.
"""
from __future__ import annotations

import json
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from architect.errors import ParseError
from architect.versions.models import ComponentSpec, DiagramKind, VersionStatus

PROJECT_RECORD_VERSION = "1.0"

R = TypeVar("R", bound="_Record")


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True, indent=2).encode("utf-8")

    @classmethod
    def parse_bytes(cls: Type[R], content: bytes, path: str = "") -> R:
        try:
            return cls.model_validate_json(content)
        except PydanticValidationError as e:
            raise ParseError(f"Invalid {cls.__name__} at {path or '<memory>'}: {e.error_count()} error(s)") from e


class SpecRecord(_Record):
    id: str
    name: str
    description: str = ""
    user_notes: str = ""

    @classmethod
    def from_spec(cls, spec: ComponentSpec) -> "SpecRecord":
        return cls(id=spec.id, name=spec.name, description=spec.description, user_notes=spec.user_notes)

    def to_spec(self) -> ComponentSpec:
        return ComponentSpec(id=self.id, name=self.name, description=self.description, user_notes=self.user_notes)


class DiagramRecord(_Record):
    id: str
    name: str
    kind: DiagramKind = DiagramKind.PRIMARY
    file: str


class ProjectRecord(_Record):
    version: str = PROJECT_RECORD_VERSION
    project_id: str
    project_name: str
    description: str = ""
    created_at: int
    updated_at: int
    latest_version_id: Optional[str] = None


class VersionRecord(_Record):
    id: str
    version_number: int = Field(ge=1)
    timestamp: int
    status: VersionStatus
    diagram_files: List[str] = Field(default_factory=list)
    diagrams: Optional[List[DiagramRecord]] = None
    refined_file: Optional[str] = None
    specs: List[SpecRecord] = Field(default_factory=list)
    build_plan: Optional[str] = None
    error: Optional[str] = None


def specs_json_bytes(specs: List[ComponentSpec]) -> bytes:
    """latest-specs.json body: a bare array of spec records."""
    payload = [SpecRecord.from_spec(s).model_dump(by_alias=True) for s in specs]
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


__all__ = [
    "PROJECT_RECORD_VERSION",
    "SpecRecord",
    "DiagramRecord",
    "ProjectRecord",
    "VersionRecord",
    "specs_json_bytes",
]
