"""API route handlers."""

from src.api.routes.platforms import router as platforms_router
from src.api.routes.workflows import router as workflows_router

__all__ = [
    "platforms_router",
    "workflows_router",
]
