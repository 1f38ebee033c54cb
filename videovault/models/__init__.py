"""Models package - domain entities and interfaces."""
from .interfaces import DocumentCollection, EntityStore, ObjectStorage
from .schemas import (
    ApiResponse,
    ChannelSummary,
    Collections,
    Comment,
    ErrorResponse,
    Like,
    LikedVideo,
    LikeTarget,
    OwnerSummary,
    Page,
    PaginationMeta,
    Playlist,
    PlaylistCreate,
    PlaylistUpdate,
    PlaylistView,
    PublishState,
    Subscription,
    ToggleLikeResult,
    Tweet,
    UploadResult,
    User,
    Video,
    VideoCreate,
    VideoUpdate,
    VideoView,
)

__all__ = [
    # Interfaces
    "DocumentCollection",
    "EntityStore",
    "ObjectStorage",
    # Schemas
    "ApiResponse",
    "ChannelSummary",
    "Collections",
    "Comment",
    "ErrorResponse",
    "Like",
    "LikedVideo",
    "LikeTarget",
    "OwnerSummary",
    "Page",
    "PaginationMeta",
    "Playlist",
    "PlaylistCreate",
    "PlaylistUpdate",
    "PlaylistView",
    "PublishState",
    "Subscription",
    "ToggleLikeResult",
    "Tweet",
    "UploadResult",
    "User",
    "Video",
    "VideoCreate",
    "VideoUpdate",
    "VideoView",
]
