"""
app/schemas package marker.
"""

from app.schemas.insights import (
    AnalysisRequest,
    AnalysisResponse,
    CacheClearedResponse,
    CacheStatusResponse,
    TabAnalysisRequest,
    TabAnalysisResponse,
)

__all__ = [
    "AnalysisRequest",
    "AnalysisResponse",
    "CacheClearedResponse",
    "CacheStatusResponse",
    "TabAnalysisRequest",
    "TabAnalysisResponse",
]
