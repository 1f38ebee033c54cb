"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Query, Request

from videovault.config import get_settings
from videovault.core.circuit_breaker import CircuitBreaker
from videovault.core.exceptions import UnauthenticatedError
from videovault.core.identifiers import is_valid_id
from videovault.models.interfaces import EntityStore, ObjectStorage
from videovault.pipeline.pagination import PageRequest
from videovault.repositories.memory import InMemoryEntityStore
from videovault.repositories.storage import InMemoryObjectStorage
from videovault.services.discovery import DiscoveryService
from videovault.services.likes import LikeService
from videovault.services.media import SERVICE_NAME, MediaService
from videovault.services.playlists import PlaylistService
from videovault.services.videos import VideoService


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_entity_store() -> EntityStore:
    """Get singleton entity store."""
    return InMemoryEntityStore(with_demo_data=get_settings().SEED_DEMO_DATA)


@lru_cache()
def get_object_storage() -> ObjectStorage:
    """Get singleton object storage client."""
    return InMemoryObjectStorage(base_url=get_settings().STORAGE_BASE_URL)


@lru_cache()
def get_storage_circuit_breaker() -> CircuitBreaker:
    """Get singleton circuit breaker for the object storage collaborator."""
    settings = get_settings()
    return CircuitBreaker(
        name=SERVICE_NAME,
        failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        recovery_timeout_sec=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC,
    )


# =============================================================================
# Request Context
# =============================================================================


def get_viewer_id(request: Request) -> Optional[str]:
    """
    Viewer identity attached by the upstream authentication collaborator.
    Absent header means an anonymous viewer.
    """
    viewer_id = request.headers.get(get_settings().VIEWER_ID_HEADER)
    if viewer_id is None:
        return None
    if not is_valid_id(viewer_id):
        raise UnauthenticatedError("Invalid viewer identity")
    return viewer_id


def require_viewer(viewer_id: Optional[str] = Depends(get_viewer_id)) -> str:
    """Viewer identity for operations that need a signed-in user."""
    if viewer_id is None:
        raise UnauthenticatedError()
    return viewer_id


def get_page_request(
    page: int = Query(default=1, description="Page number, starting at 1"),
    limit: Optional[int] = Query(default=None, description="Items per page"),
) -> PageRequest:
    """Pagination window from query params; invalid values raise ValidationError (400)."""
    settings = get_settings()
    return PageRequest.from_params(
        page=page,
        limit=settings.DEFAULT_PAGE_LIMIT if limit is None else limit,
        max_limit=settings.MAX_PAGE_LIMIT,
    )


# =============================================================================
# Request-Scoped Dependencies (Per-Request Lifetime)
# =============================================================================


def get_media_service(
    storage: ObjectStorage = Depends(get_object_storage),
    circuit_breaker: CircuitBreaker = Depends(get_storage_circuit_breaker),
) -> MediaService:
    return MediaService(
        storage=storage,
        circuit_breaker=circuit_breaker,
        timeout_sec=get_settings().STORAGE_TIMEOUT_SEC,
    )


def get_video_service(
    store: EntityStore = Depends(get_entity_store),
    media: MediaService = Depends(get_media_service),
) -> VideoService:
    return VideoService(store=store, media=media)


def get_like_service(store: EntityStore = Depends(get_entity_store)) -> LikeService:
    return LikeService(store=store)


def get_playlist_service(store: EntityStore = Depends(get_entity_store)) -> PlaylistService:
    return PlaylistService(store=store)


def get_discovery_service(store: EntityStore = Depends(get_entity_store)) -> DiscoveryService:
    return DiscoveryService(store=store)


# =============================================================================
# Cleanup Functions
# =============================================================================


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_entity_store.cache_clear()
    get_object_storage.cache_clear()
    get_storage_circuit_breaker.cache_clear()
