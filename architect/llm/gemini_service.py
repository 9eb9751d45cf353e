# FILE: architect/llm/gemini_service.py
"""
Google Gemini implementation of DiagramServices.

Models (overridable through ArchitectConfig / environment):
- refinement: gemini-3-pro-image-preview, 16:9 2K image output
- analysis:   gemini-3-pro-preview, JSON array response
- build plan: gemini-3-pro-preview, Markdown text

Calls are made once; retry policy belongs to the caller (a new Version).
Every failure is raised as ExternalServiceError with the provider message.
"""
from __future__ import annotations

import base64
import logging
from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import types

from architect.config import ArchitectConfig
from architect.errors import ExternalServiceError
from architect.llm.prompts import GENERATION_CONFIG, PROMPTS, build_plan_prompt
from architect.llm.services import ComponentSuggestion, DiagramServices, parse_component_list
from architect.versions.models import ComponentSpec

logger = logging.getLogger(__name__)


# =============================================================================
# IMAGE HELPERS
# =============================================================================

def detect_image_mime_type(data: bytes) -> str:
    """Sniff the MIME type from magic bytes; sketches default to PNG."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "image/png"


def _image_part(data: bytes) -> types.Part:
    return types.Part.from_bytes(data=data, mime_type=detect_image_mime_type(data))


def extract_image_bytes(response: Any) -> Optional[bytes]:
    """Return the first inline image payload of a generate_content response."""
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline is not None else None
            if not data:
                continue
            if isinstance(data, str):
                return base64.b64decode(data)
            return bytes(data)
    return None


# =============================================================================
# SERVICE
# =============================================================================

class GeminiDiagramService(DiagramServices):
    """DiagramServices backed by the google-genai async client."""

    def __init__(self, config: ArchitectConfig, client: Optional[genai.Client] = None):
        self._config = config
        self._client = client

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self._config.google_api_key:
                raise ExternalServiceError("GOOGLE_API_KEY not set")
            self._client = genai.Client(api_key=self._config.google_api_key)
            logger.info("[gemini] Client initialized")
        return self._client

    async def _generate(self, model: str, contents: list, config: types.GenerateContentConfig, what: str) -> Any:
        client = self._get_client()
        try:
            return await client.aio.models.generate_content(model=model, contents=contents, config=config)
        except Exception as e:
            logger.error(f"[gemini] {what} failed on {model}: {e}")
            raise ExternalServiceError(f"{what} failed: {e}") from e

    async def refine_sketches(self, images: Sequence[bytes]) -> bytes:
        contents = [PROMPTS["REFINE_SKETCH"]["template"], *(_image_part(img) for img in images)]
        config = types.GenerateContentConfig(
            temperature=GENERATION_CONFIG["temperature"],
            response_modalities=["TEXT", "IMAGE"],
            image_config=types.ImageConfig(aspect_ratio="16:9", image_size="2K"),
        )
        response = await self._generate(self._config.refine_model, contents, config, "Refinement")
        image = extract_image_bytes(response)
        if image is None:
            raise ExternalServiceError("No image generated by the model.")
        logger.info(f"[gemini] Refined {len(images)} sketch(es) into {len(image)} bytes")
        return image

    async def analyze_components(self, image: bytes) -> List[ComponentSuggestion]:
        contents = [PROMPTS["ANALYZE_COMPONENTS"]["template"], _image_part(image)]
        config = types.GenerateContentConfig(
            temperature=GENERATION_CONFIG["temperature"],
            top_p=GENERATION_CONFIG["top_p"],
            top_k=GENERATION_CONFIG["top_k"],
            response_mime_type="application/json",
            response_schema=list[ComponentSuggestion],
        )
        response = await self._generate(self._config.analysis_model, contents, config, "Analysis")
        components = parse_component_list(getattr(response, "text", None) or "")
        logger.info(f"[gemini] Extracted {len(components)} component(s)")
        return components

    async def generate_build_plan(self, image: bytes, specs: Sequence[ComponentSpec]) -> str:
        contents = [build_plan_prompt(specs), _image_part(image)]
        config = types.GenerateContentConfig(
            temperature=GENERATION_CONFIG["temperature"],
            top_p=GENERATION_CONFIG["top_p"],
            top_k=GENERATION_CONFIG["top_k"],
        )
        response = await self._generate(self._config.build_plan_model, contents, config, "Build plan")
        text = (getattr(response, "text", None) or "").strip()
        if not text:
            raise ExternalServiceError("Model returned an empty build plan")
        return text


__all__ = [
    "GeminiDiagramService",
    "detect_image_mime_type",
    "extract_image_bytes",
]
