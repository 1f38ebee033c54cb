"""API routers package."""
from .discover import router as discover_router
from .health import router as health_router
from .likes import router as likes_router
from .playlists import router as playlists_router
from .videos import router as videos_router

__all__ = [
    "discover_router",
    "health_router",
    "likes_router",
    "playlists_router",
    "videos_router",
]
