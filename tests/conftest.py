"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from videovault.api.dependencies import (
    get_entity_store,
    get_object_storage,
    get_storage_circuit_breaker,
)
from videovault.core.circuit_breaker import CircuitBreaker
from videovault.main import app
from videovault.models.schemas import Collections, Playlist, User, Video
from videovault.repositories.memory import InMemoryEntityStore
from videovault.repositories.storage import InMemoryObjectStorage
from videovault.services.discovery import DiscoveryService
from videovault.services.likes import LikeService
from videovault.services.media import SERVICE_NAME, MediaService
from videovault.services.playlists import PlaylistService
from videovault.services.videos import VideoService

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Deterministic timestamp, `minutes` after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def seed_user(store: InMemoryEntityStore, username: str, **fields) -> dict:
    user = User(username=username, fullname=fields.pop("fullname", username.title()), **fields)
    return store.seed(Collections.USERS, [user.model_dump()])[0]


def seed_video(store: InMemoryEntityStore, owner: dict, title: str = "Video", **fields) -> dict:
    fields.setdefault("description", f"About {title}")
    fields.setdefault("video_file", f"https://assets.videovault.local/video/upload/{title.lower().replace(' ', '_')}.mp4")
    fields.setdefault("is_published", True)
    video = Video(owner=owner["id"], title=title, **fields)
    return store.seed(Collections.VIDEOS, [video.model_dump()])[0]


def seed_playlist(store: InMemoryEntityStore, owner: dict, name: str = "Favourites", **fields) -> dict:
    fields.setdefault("description", f"{name} playlist")
    playlist = Playlist(owner=owner["id"], name=name, **fields)
    return store.seed(Collections.PLAYLISTS, [playlist.model_dump()])[0]


def viewer(user: dict) -> dict:
    """Request headers identifying `user` as the viewer."""
    return {"X-Viewer-ID": user["id"]}


@pytest.fixture
def store():
    """Fresh in-memory entity store per test."""
    return InMemoryEntityStore()


@pytest.fixture
def storage():
    """Fresh in-memory object storage per test."""
    return InMemoryObjectStorage(durations={"/tmp/clip.mp4": 42.5})


@pytest.fixture
def circuit_breaker():
    return CircuitBreaker(SERVICE_NAME, failure_threshold=3, recovery_timeout_sec=30)


@pytest.fixture
def media_service(storage, circuit_breaker):
    return MediaService(storage=storage, circuit_breaker=circuit_breaker, timeout_sec=1.0)


@pytest.fixture
def video_service(store, media_service):
    return VideoService(store=store, media=media_service)


@pytest.fixture
def like_service(store):
    return LikeService(store=store)


@pytest.fixture
def playlist_service(store):
    return PlaylistService(store=store)


@pytest.fixture
def discovery_service(store):
    return DiscoveryService(store=store)


@pytest.fixture
def alice(store):
    return seed_user(store, "alice", fullname="Alice Archer")


@pytest.fixture
def bob(store):
    return seed_user(store, "bob", fullname="Bob Builder")


@pytest.fixture
def test_client(store, storage, circuit_breaker):
    """
    TestClient fixture with dependency overrides.
    Uses in-memory store and storage for isolation.
    """
    app.dependency_overrides[get_entity_store] = lambda: store
    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_storage_circuit_breaker] = lambda: circuit_breaker

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
