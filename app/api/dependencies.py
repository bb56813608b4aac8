"""
app/api/dependencies.py

Shared FastAPI dependencies.
"""

from __future__ import annotations

from functools import lru_cache

from analysis.orchestrator import AnalysisOrchestrator


@lru_cache(maxsize=1)
def get_orchestrator() -> AnalysisOrchestrator:
    """
    Return the process-wide orchestrator so every request shares one cache.
    """

    return AnalysisOrchestrator.from_settings()
