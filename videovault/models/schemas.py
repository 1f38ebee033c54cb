"""
Domain models using Pydantic.
Stored documents, API payloads and the response envelope.

Python attributes and stored documents are snake_case; every model
serializes to camelCase on the wire through its alias generator.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from videovault.core.identifiers import new_id

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Collections:
    """Entity store collection names."""

    USERS = "users"
    VIDEOS = "videos"
    PLAYLISTS = "playlists"
    LIKES = "likes"
    SUBSCRIPTIONS = "subscriptions"
    COMMENTS = "comments"
    TWEETS = "tweets"

    ALL = (USERS, VIDEOS, PLAYLISTS, LIKES, SUBSCRIPTIONS, COMMENTS, TWEETS)


class ApiModel(BaseModel):
    """Base model: camelCase aliases, populated by field name internally."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PublishState(str, Enum):
    """Two-state visibility lifecycle of a video."""

    DRAFT = "draft"
    PUBLISHED = "published"

    @classmethod
    def of(cls, is_published: bool) -> "PublishState":
        return cls.PUBLISHED if is_published else cls.DRAFT

    def toggled(self) -> "PublishState":
        return PublishState.DRAFT if self is PublishState.PUBLISHED else PublishState.PUBLISHED


class LikeTarget(str, Enum):
    """Entity kinds a Like can reference; the value is the Like field name."""

    VIDEO = "video"
    COMMENT = "comment"
    TWEET = "tweet"

    @property
    def collection(self) -> str:
        return {
            LikeTarget.VIDEO: Collections.VIDEOS,
            LikeTarget.COMMENT: Collections.COMMENTS,
            LikeTarget.TWEET: Collections.TWEETS,
        }[self]


# =============================================================================
# Stored Documents
# =============================================================================


class Document(ApiModel):
    """Fields shared by every stored document."""

    id: str = Field(default_factory=new_id, description="Document id (ObjectId hex)")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class User(Document):
    """
    Channel/user profile. Subscriber and video counts are never stored;
    they are derived at read time.
    """

    username: str
    fullname: str
    email: Optional[str] = None
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    watch_history: List[str] = Field(default_factory=list)


class Video(Document):
    owner: str = Field(..., description="Owner user id, immutable")
    title: str
    description: str
    video_file: str = Field(..., description="Media asset URL")
    thumbnail: Optional[str] = Field(default=None, description="Thumbnail asset URL")
    duration: float = 0
    views: int = 0
    is_published: bool = False

    @property
    def state(self) -> PublishState:
        return PublishState.of(self.is_published)


class Playlist(Document):
    owner: str = Field(..., description="Owner user id, immutable")
    name: str
    description: str
    videos: List[str] = Field(default_factory=list, description="Ordered, no duplicates")


class Like(Document):
    """Join record: exactly one of video/comment/tweet plus the liking user."""

    liked_by: str
    video: Optional[str] = None
    comment: Optional[str] = None
    tweet: Optional[str] = None


class Subscription(Document):
    channel: str
    subscriber: str


class Comment(Document):
    video: str
    owner: str
    content: str


class Tweet(Document):
    owner: str
    content: str


# =============================================================================
# Object Storage
# =============================================================================


class UploadResult(BaseModel):
    """Result of an object storage upload."""

    url: str
    public_id: str
    duration: Optional[float] = None


# =============================================================================
# API Models (Requests)
# =============================================================================


class _TitledInput(ApiModel):
    @field_validator("title", "description", "name", mode="before", check_fields=False)
    @classmethod
    def _not_blank(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("must not be blank")
        return value


class VideoCreate(_TitledInput):
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=5000)
    video_file_path: str = Field(..., min_length=1, description="Local path of the uploaded video file")
    thumbnail_path: Optional[str] = Field(default=None, description="Local path of the thumbnail")
    is_published: bool = True


class VideoUpdate(_TitledInput):
    title: str = Field(..., max_length=200)
    description: str = Field(..., max_length=5000)
    thumbnail_path: Optional[str] = None


class PlaylistCreate(_TitledInput):
    name: str = Field(..., max_length=150)
    description: str = Field(..., max_length=2000)


class PlaylistUpdate(PlaylistCreate):
    pass


# =============================================================================
# API Models (Responses)
# =============================================================================


class OwnerSummary(ApiModel):
    id: str
    username: Optional[str] = None
    fullname: Optional[str] = None
    avatar: Optional[str] = None
    subscribers_count: Optional[int] = None
    is_subscribed: Optional[bool] = None


class VideoView(ApiModel):
    """Video enriched for a specific viewer."""

    id: str
    title: str
    description: Optional[str] = None
    video_file: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: float = 0
    views: int = 0
    is_published: Optional[bool] = None
    created_at: Optional[datetime] = None
    owner: Optional[OwnerSummary] = None
    likes_count: int = 0
    is_liked: bool = False


class PlaylistView(ApiModel):
    id: str
    name: str
    description: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    total_videos: int = 0
    total_views: int = 0
    owner: Optional[OwnerSummary] = None
    videos: List[VideoView] = Field(default_factory=list)


class ChannelSummary(ApiModel):
    """Public channel card; credential fields are never included."""

    id: str
    username: str
    fullname: Optional[str] = None
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    subscribers_count: int = 0
    videos_count: int = 0
    is_subscribed: bool = False
    created_at: Optional[datetime] = None


class LikedVideo(ApiModel):
    liked_at: datetime
    video: VideoView


class ToggleLikeResult(ApiModel):
    target_type: LikeTarget
    target_id: str
    is_liked: bool


class PaginationMeta(ApiModel):
    current_page: int
    total_pages: int
    total_results: int
    has_next_page: bool
    has_prev_page: bool


class Page(ApiModel, Generic[T]):
    """Listing payload."""

    items: List[T]
    pagination: PaginationMeta


class ApiResponse(ApiModel, Generic[T]):
    """Response envelope shared by every endpoint."""

    status_code: int = 200
    success: bool = True
    message: str
    data: Optional[T] = None


class ErrorResponse(ApiModel):
    """Standard error response format."""

    status_code: int
    success: bool = False
    message: str
    error: dict = Field(..., description="Error code and details")
