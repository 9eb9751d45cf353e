# FILE: architect/llm/__init__.py
"""
External AI capabilities.

    - DiagramServices: the abstract contract the pipeline calls
    - GeminiDiagramService: Google Gemini implementation
    - prompts: versioned prompt templates
"""

from .services import ComponentSuggestion, DiagramServices, parse_component_list
from .gemini_service import GeminiDiagramService
from .prompts import PROMPTS, get_prompt_versions

__all__ = [
    "ComponentSuggestion",
    "DiagramServices",
    "parse_component_list",
    "GeminiDiagramService",
    "PROMPTS",
    "get_prompt_versions",
]
