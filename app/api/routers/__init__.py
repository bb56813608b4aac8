"""
app/api/routers package marker.
"""

from app.api.routers.insights_router import router as insights_router

__all__ = [
    "insights_router",
]
