"""API package - FastAPI routes and dependencies."""
from .routers import (
    discover_router,
    health_router,
    likes_router,
    playlists_router,
    videos_router,
)

__all__ = [
    "discover_router",
    "health_router",
    "likes_router",
    "playlists_router",
    "videos_router",
]
