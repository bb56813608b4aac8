"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_ALLOWED_LLM_ADAPTERS = {"openai", "mock", "none"}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class LLMSettings:
    """
    Remote narrative model settings.

    ``api_key`` is ``None`` when no credential is configured; the analysis
    pipeline then stays on the local heuristic path.
    """

    adapter: str = "openai"
    api_key: str | None = None
    model: str = "gpt-4o-mini"
    max_tokens: int = 200
    base_url: str | None = None
    timeout_seconds: float = 20.0
    max_retries: int = 1
    response_language: str = "Brazilian Portuguese"


@dataclass(frozen=True)
class AnalysisSettings:
    """
    Runtime settings for the insight analysis pipeline.
    """

    cache_ttl_seconds: float = 900.0
    status_synonyms_path: str | None = None


@lru_cache(maxsize=1)
def get_llm_settings() -> LLMSettings:
    """
    Return cached remote narrative settings from environment variables.

    Unknown ``LLM_ADAPTER`` values fall back to ``openai``.
    """

    adapter = _get_str_env("LLM_ADAPTER", "openai").lower()
    if adapter not in _ALLOWED_LLM_ADAPTERS:
        adapter = "openai"

    return LLMSettings(
        adapter=adapter,
        api_key=_get_optional_str_env("LLM_API_KEY") or _get_optional_str_env("OPENAI_API_KEY"),
        model=_get_str_env("LLM_MODEL", "gpt-4o-mini"),
        max_tokens=max(16, _get_int_env("LLM_MAX_TOKENS", 200)),
        base_url=_get_optional_str_env("LLM_BASE_URL"),
        timeout_seconds=max(1.0, _get_float_env("LLM_TIMEOUT_SECONDS", 20.0)),
        max_retries=max(0, _get_int_env("LLM_MAX_RETRIES", 1)),
        response_language=_get_str_env("LLM_RESPONSE_LANGUAGE", "Brazilian Portuguese"),
    )


@lru_cache(maxsize=1)
def get_analysis_settings() -> AnalysisSettings:
    """
    Return cached analysis pipeline settings from environment variables.
    """

    return AnalysisSettings(
        cache_ttl_seconds=max(1.0, _get_float_env("INSIGHTS_CACHE_TTL_SECONDS", 900.0)),
        status_synonyms_path=_get_optional_str_env("STATUS_SYNONYMS_PATH"),
    )
