"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
"""

from fastapi import APIRouter

from filegate.api.routes.files import router as files_router
from filegate.api.routes.health import router as health_router
from filegate.api.routes.manage import router as manage_router


def create_api_router() -> APIRouter:
    """Create and configure the API router."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(files_router, tags=["files"])
    api_router.include_router(manage_router, tags=["manage"])
    return api_router


__all__ = ["create_api_router"]
