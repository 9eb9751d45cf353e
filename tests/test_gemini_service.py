# FILE: tests/test_gemini_service.py
"""
Tests for architect/llm/gemini_service.py and architect/llm/services.py

The google-genai client is replaced with a Mock; no network.
"""

import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from architect.errors import ExternalServiceError
from architect.llm.gemini_service import GeminiDiagramService, detect_image_mime_type, extract_image_bytes
from architect.llm.services import ComponentSuggestion, parse_component_list, strip_code_fences
from architect.versions.models import ComponentSpec


def _image_response(data):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type="image/png"), text=None)
    text_part = SimpleNamespace(inline_data=None, text="Here is your diagram")
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[text_part, part]))])


def _mock_client(response=None, error=None):
    client = Mock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=error)
    return client


class TestHelpers:
    """Pure parsing helpers."""

    @pytest.mark.parametrize("data,expected", [
        (b"\x89PNG\r\n\x1a\n....", "image/png"),
        (b"\xff\xd8\xff\xe0....", "image/jpeg"),
        (b"GIF89a....", "image/gif"),
        (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
        (b"unknown", "image/png"),
    ])
    def test_detect_mime(self, data, expected):
        assert detect_image_mime_type(data) == expected

    def test_extract_image_bytes(self):
        assert extract_image_bytes(_image_response(b"png-bytes")) == b"png-bytes"

    def test_extract_base64_string(self):
        encoded = base64.b64encode(b"png-bytes").decode()
        assert extract_image_bytes(_image_response(encoded)) == b"png-bytes"

    def test_extract_none_when_text_only(self):
        response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[
            SimpleNamespace(inline_data=None, text="I cannot draw that"),
        ]))])
        assert extract_image_bytes(response) is None
        assert extract_image_bytes(SimpleNamespace(candidates=None)) is None

    def test_strip_code_fences(self):
        assert strip_code_fences("```json\n[]\n```") == "[]"
        assert strip_code_fences("  []  ") == "[]"

    def test_parse_component_list(self):
        components = parse_component_list('[{"name": "API", "description": "Routes"}, {"name": "Cache"}]')
        assert components == [
            ComponentSuggestion(name="API", description="Routes"),
            ComponentSuggestion(name="Cache", description=""),
        ]

    def test_parse_wrapped_list(self):
        assert parse_component_list('{"components": [{"name": "API"}]}')[0].name == "API"

    @pytest.mark.parametrize("text", ["", "not json", '{"name": "API"}', '[{"description": "no name"}]'])
    def test_parse_unusable(self, text):
        with pytest.raises(ExternalServiceError):
            parse_component_list(text)


class TestGeminiDiagramService:
    async def test_refine_returns_image(self, config):
        client = _mock_client(_image_response(b"refined"))
        service = GeminiDiagramService(config, client=client)

        assert await service.refine_sketches([b"\x89PNG\r\n\x1a\na", b"\x89PNG\r\n\x1a\nb"]) == b"refined"
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == config.refine_model
        assert len(kwargs["contents"]) == 3
        assert kwargs["config"].response_modalities == ["TEXT", "IMAGE"]
        assert kwargs["config"].image_config.aspect_ratio == "16:9"

    async def test_refine_without_image_fails(self, config):
        response = SimpleNamespace(candidates=[])
        service = GeminiDiagramService(config, client=_mock_client(response))
        with pytest.raises(ExternalServiceError, match="No image generated"):
            await service.refine_sketches([b"sketch"])

    async def test_provider_error_wrapped(self, config):
        service = GeminiDiagramService(config, client=_mock_client(error=RuntimeError("429 RESOURCE_EXHAUSTED")))
        with pytest.raises(ExternalServiceError, match="RESOURCE_EXHAUSTED"):
            await service.analyze_components(b"img")

    async def test_analyze_parses_json(self, config):
        response = SimpleNamespace(text='```json\n[{"name": "Queue", "description": "Buffers jobs"}]\n```')
        client = _mock_client(response)
        service = GeminiDiagramService(config, client=client)

        components = await service.analyze_components(b"img")
        assert components == [ComponentSuggestion(name="Queue", description="Buffers jobs")]
        call_config = client.aio.models.generate_content.call_args.kwargs["config"]
        assert call_config.response_mime_type == "application/json"
        assert call_config.temperature == 0.0

    async def test_build_plan_prompt_includes_notes(self, config):
        client = _mock_client(SimpleNamespace(text="# Plan"))
        service = GeminiDiagramService(config, client=client)
        specs = [ComponentSpec(id="c1", name="API", description="Routes", user_notes="Use Go")]

        assert await service.generate_build_plan(b"img", specs) == "# Plan"
        prompt = client.aio.models.generate_content.call_args.kwargs["contents"][0]
        assert "### API" in prompt
        assert "Use Go" in prompt

    async def test_empty_build_plan_fails(self, config):
        service = GeminiDiagramService(config, client=_mock_client(SimpleNamespace(text="")))
        with pytest.raises(ExternalServiceError):
            await service.generate_build_plan(b"img", [])

    async def test_missing_api_key(self, config):
        service = GeminiDiagramService(config.with_overrides(google_api_key=None))
        with pytest.raises(ExternalServiceError, match="GOOGLE_API_KEY"):
            await service.refine_sketches([b"sketch"])
