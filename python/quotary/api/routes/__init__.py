"""API route definitions.

Uses a factory so importing route modules never loads settings.
"""

from fastapi import APIRouter

from quotary.api.routes.daily_selection import router as daily_selection_router
from quotary.api.routes.health import router as health_router
from quotary.api.routes.me import router as me_router
from quotary.api.routes.relations import router as relations_router


def create_api_router() -> APIRouter:
    """Create the API router with all routes registered."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(me_router, tags=["user"])
    api_router.include_router(relations_router)
    api_router.include_router(daily_selection_router)
    return api_router


__all__ = ["create_api_router"]
