# FILE: tests/conftest.py
"""
Pytest configuration and shared doubles for the architect test suite.

pytest-asyncio runs in auto mode (see pyproject.toml), so async tests need no
marker. Everything here is offline: InMemoryHost stands in for GitHub and
FakeDiagramServices for Gemini.
"""
import asyncio
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest

from architect.config import ArchitectConfig
from architect.llm.services import ComponentSuggestion, DiagramServices
from architect.storage.memory_store import InMemoryHost
from architect.versions.models import Diagram, DiagramKind

# Not valid images, but they carry real magic bytes and differ from each other.
SKETCH_MAIN = b"\x89PNG\r\n\x1a\nmain-sketch"
SKETCH_SUB = b"\x89PNG\r\n\x1a\nsub-sketch"
REFINED_PNG = b"\x89PNG\r\n\x1a\nrefined-diagram"
BUILD_PLAN = "# Build Plan\n\n## Executive Summary\nShip it."


class FakeDiagramServices(DiagramServices):
    """Scripted DiagramServices that counts calls."""

    def __init__(self):
        self.calls = {"refine": 0, "analyze": 0, "build_plan": 0}
        self.refined = REFINED_PNG
        self.components = [
            ComponentSuggestion(name="API Gateway", description="Routes client requests"),
            ComponentSuggestion(name="User Database", description="Stores accounts"),
        ]
        self.plan = BUILD_PLAN
        self.refine_error = None
        self.analyze_error = None
        self.plan_error = None
        self.delay = 0.0
        self.refine_inputs = []
        self.plan_specs = []

    async def refine_sketches(self, images):
        self.calls["refine"] += 1
        self.refine_inputs.append(list(images))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.refine_error is not None:
            raise self.refine_error
        return self.refined

    async def analyze_components(self, image):
        self.calls["analyze"] += 1
        if self.analyze_error is not None:
            raise self.analyze_error
        return list(self.components)

    async def generate_build_plan(self, image, specs):
        self.calls["build_plan"] += 1
        self.plan_specs.append(list(specs))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.plan_error is not None:
            raise self.plan_error
        return self.plan


@pytest.fixture
def config(tmp_path):
    """Config with short timeouts and a throwaway data dir."""
    return ArchitectConfig(
        google_api_key="test-key",
        github_token="test-token",
        refine_timeout_s=2.0,
        analyze_timeout_s=2.0,
        build_plan_timeout_s=2.0,
        store_timeout_s=2.0,
        data_dir=str(tmp_path / "data"),
    )


@pytest.fixture
def fake_services():
    return FakeDiagramServices()


@pytest.fixture
def host():
    return InMemoryHost(login="octocat")


@pytest.fixture
def diagrams():
    return [
        Diagram(id="diagram-main", name="Main Architecture", image=SKETCH_MAIN, kind=DiagramKind.PRIMARY),
        Diagram(id="diagram-sub", name="Auth Flow", image=SKETCH_SUB, kind=DiagramKind.AUXILIARY),
    ]
