# FILE: architect/config.py
"""
Runtime configuration for the ArchitectAI core.

Values come from the environment (a local .env is loaded first). Modules take
an ArchitectConfig snapshot instead of reading os.environ themselves, so tests
can build one with overrides.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_GITHUB_API = "https://api.github.com"
DEFAULT_PROJECT_TOPIC = "architectai-project"

DEFAULT_REFINE_MODEL = "gemini-3-pro-image-preview"
DEFAULT_ANALYSIS_MODEL = "gemini-3-pro-preview"
DEFAULT_BUILD_PLAN_MODEL = "gemini-3-pro-preview"

DEFAULT_REFINE_TIMEOUT_S = 180.0
DEFAULT_ANALYZE_TIMEOUT_S = 120.0
DEFAULT_BUILD_PLAN_TIMEOUT_S = 240.0
DEFAULT_STORE_TIMEOUT_S = 30.0


# =============================================================================
# ENV HELPERS
# =============================================================================

def _clean_secret(value: Optional[str]) -> Optional[str]:
    """Strip whitespace and stray quotes copied in from .env files."""
    if value:
        value = value.strip().strip('"').strip("'")
    return value if value else None


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_google_api_key() -> Optional[str]:
    """Gemini API key (GOOGLE_API_KEY, falling back to GEMINI_API_KEY)."""
    return _clean_secret(os.getenv("GOOGLE_API_KEY")) or _clean_secret(os.getenv("GEMINI_API_KEY"))


def get_github_token() -> Optional[str]:
    """Bearer credential obtained by the device-flow collaborator."""
    return _clean_secret(os.getenv("GITHUB_TOKEN"))


# =============================================================================
# CONFIG SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class ArchitectConfig:
    google_api_key: Optional[str] = None
    github_token: Optional[str] = None
    github_api: str = DEFAULT_GITHUB_API
    project_topic: str = DEFAULT_PROJECT_TOPIC
    refine_model: str = DEFAULT_REFINE_MODEL
    analysis_model: str = DEFAULT_ANALYSIS_MODEL
    build_plan_model: str = DEFAULT_BUILD_PLAN_MODEL
    refine_timeout_s: float = DEFAULT_REFINE_TIMEOUT_S
    analyze_timeout_s: float = DEFAULT_ANALYZE_TIMEOUT_S
    build_plan_timeout_s: float = DEFAULT_BUILD_PLAN_TIMEOUT_S
    store_timeout_s: float = DEFAULT_STORE_TIMEOUT_S
    data_dir: str = "data"

    def with_overrides(self, **changes) -> "ArchitectConfig":
        return replace(self, **changes)


def load_config() -> ArchitectConfig:
    """Build a config snapshot from the current environment."""
    return ArchitectConfig(
        google_api_key=get_google_api_key(),
        github_token=get_github_token(),
        github_api=os.getenv("ARCHITECT_GITHUB_API", DEFAULT_GITHUB_API).rstrip("/"),
        project_topic=os.getenv("ARCHITECT_PROJECT_TOPIC", DEFAULT_PROJECT_TOPIC),
        refine_model=os.getenv("ARCHITECT_REFINE_MODEL", DEFAULT_REFINE_MODEL),
        analysis_model=os.getenv("ARCHITECT_ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL),
        build_plan_model=os.getenv("ARCHITECT_BUILD_PLAN_MODEL", DEFAULT_BUILD_PLAN_MODEL),
        refine_timeout_s=_get_float("ARCHITECT_REFINE_TIMEOUT_S", DEFAULT_REFINE_TIMEOUT_S),
        analyze_timeout_s=_get_float("ARCHITECT_ANALYZE_TIMEOUT_S", DEFAULT_ANALYZE_TIMEOUT_S),
        build_plan_timeout_s=_get_float("ARCHITECT_BUILD_PLAN_TIMEOUT_S", DEFAULT_BUILD_PLAN_TIMEOUT_S),
        store_timeout_s=_get_float("ARCHITECT_STORE_TIMEOUT_S", DEFAULT_STORE_TIMEOUT_S),
        data_dir=os.getenv("ARCHITECT_DATA_DIR", "data"),
    )


__all__ = [
    "ArchitectConfig",
    "load_config",
    "get_google_api_key",
    "get_github_token",
]
