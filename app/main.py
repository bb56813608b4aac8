from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from app.config import get_analysis_settings, get_llm_settings, load_env_files


def _validate_env() -> None:
    """
    Validate analysis-related environment variables at startup.

    Missing LLM credentials are not an error: the service degrades to local
    narratives. Values that are present but unusable abort startup, listing
    every problem so the operator can fix them in one restart cycle.
    """

    load_env_files()

    errors: list[str] = []

    adapter = os.getenv("LLM_ADAPTER", "openai").strip().lower()
    if adapter not in {"openai", "mock", "none"}:
        errors.append(
            f"LLM_ADAPTER='{adapter}' is not valid. Allowed values: ['mock', 'none', 'openai']."
        )

    for name in ("LLM_TIMEOUT_SECONDS", "INSIGHTS_CACHE_TTL_SECONDS"):
        raw = os.getenv(name, "").strip()
        if not raw:
            continue
        try:
            if float(raw) <= 0:
                errors.append(f"{name} must be positive, got '{raw}'.")
        except ValueError:
            errors.append(f"{name} must be a number, got '{raw}'.")

    synonyms_path = os.getenv("STATUS_SYNONYMS_PATH", "").strip()
    if synonyms_path and not os.path.isfile(synonyms_path):
        errors.append(f"STATUS_SYNONYMS_PATH='{synonyms_path}' does not point to a file.")

    if errors:
        raise RuntimeError(
            "Startup validation failed, invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    llm = get_llm_settings()
    analysis = get_analysis_settings()
    logging.getLogger(__name__).info(
        "Insight analysis configured adapter=%s remote_key=%s cache_ttl=%.0fs",
        llm.adapter,
        "set" if llm.api_key else "missing",
        analysis.cache_ttl_seconds,
    )

    application = FastAPI(
        title="Rollout Insights API",
        version="1.0.0",
    )

    from app.api.routers import insights_router

    application.include_router(insights_router)

    @application.get("/health")
    def healthcheck() -> dict:
        remote = llm.adapter == "mock" or (llm.adapter == "openai" and bool(llm.api_key))
        return {"status": "ok", "remoteNarratives": remote}

    return application


app = create_app()
