"""Services package - business logic layer."""
from .discovery import ChannelSort, DiscoveryService, VideoSort
from .likes import LikeService
from .media import MediaService
from .ownership import Action, authorize, owner_gated
from .playlists import PlaylistService
from .videos import VideoService

__all__ = [
    "Action",
    "ChannelSort",
    "DiscoveryService",
    "LikeService",
    "MediaService",
    "PlaylistService",
    "VideoService",
    "VideoSort",
    "authorize",
    "owner_gated",
]
