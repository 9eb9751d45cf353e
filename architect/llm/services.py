# FILE: architect/llm/services.py
"""
Interface of the three external AI capabilities the pipeline depends on.

The orchestrator only sees this contract; GeminiDiagramService is the
production implementation and tests substitute scripted fakes.
"""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import List, Sequence

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from architect.errors import ExternalServiceError
from architect.versions.models import ComponentSpec


class ComponentSuggestion(BaseModel):
    """One component as returned by the analysis capability."""
    name: str
    description: str = ""


_SUGGESTIONS = TypeAdapter(List[ComponentSuggestion])


class DiagramServices(ABC):
    """External capabilities: refine sketches, extract components, write a plan."""

    @abstractmethod
    async def refine_sketches(self, images: Sequence[bytes]) -> bytes:
        """Synthesize one refined diagram image from N sketches."""

    @abstractmethod
    async def analyze_components(self, image: bytes) -> List[ComponentSuggestion]:
        """Extract {name, description} components from one image."""

    @abstractmethod
    async def generate_build_plan(self, image: bytes, specs: Sequence[ComponentSpec]) -> str:
        """Produce an implementation document for the diagram and its specs."""


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ``` fence that models sometimes add to JSON."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines)
    return text.strip()


def parse_component_list(text: str) -> List[ComponentSuggestion]:
    """Parse the analysis response; raises ExternalServiceError if unusable."""
    if not text or not text.strip():
        raise ExternalServiceError("No text response from model")
    try:
        raw = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ExternalServiceError(f"Component list is not valid JSON: {e}") from e
    # Some responses wrap the array: {"components": [...]}
    if isinstance(raw, dict) and isinstance(raw.get("components"), list):
        raw = raw["components"]
    try:
        return _SUGGESTIONS.validate_python(raw)
    except PydanticValidationError as e:
        raise ExternalServiceError(f"Component list has unexpected shape: {e.error_count()} error(s)") from e


__all__ = [
    "ComponentSuggestion",
    "DiagramServices",
    "strip_code_fences",
    "parse_component_list",
]
