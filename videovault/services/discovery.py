"""
Discovery service.
Ranked, searchable channel and video listings personalized to the viewer.
"""
import logging
from enum import Enum
from typing import Optional

from videovault.models.interfaces import EntityStore
from videovault.models.schemas import ChannelSummary, Collections, Page, VideoView
from videovault.pipeline.compiler import Pipeline, PipelineCompiler
from videovault.pipeline.pagination import PageRequest
from videovault.pipeline.stages import Eq, Project, TextSearch, all_of
from videovault.pipeline.viewer import (
    CHANNEL_SUBSCRIBERS,
    CHANNEL_VIDEOS,
    ViewerContextResolver,
)
from videovault.services.queries import video_cards, video_search

logger = logging.getLogger(__name__)

CHANNEL_SEARCH_FIELDS = ("username", "fullname")

# Public channel card; email and watch history are never projected
CHANNEL_CARD = Project(
    (
        "id",
        "username",
        "fullname",
        "avatar",
        "cover_image",
        "subscribers_count",
        "videos_count",
        "is_subscribed",
        "created_at",
    )
)


class RankedSort(str, Enum):
    """Base for discovery sort options: value is the query key."""

    @property
    def field(self) -> str:
        raise NotImplementedError

    @classmethod
    def default(cls) -> "RankedSort":
        raise NotImplementedError

    @classmethod
    def parse(cls, value: Optional[str]) -> "RankedSort":
        """Unrecognized keys fall back to the default ranking."""
        try:
            return cls(value)
        except ValueError:
            return cls.default()


class ChannelSort(RankedSort):
    SUBSCRIBERS = "subscribers"
    VIDEOS = "videos"
    RECENT = "recent"

    @property
    def field(self) -> str:
        return {
            ChannelSort.SUBSCRIBERS: "subscribers_count",
            ChannelSort.VIDEOS: "videos_count",
            ChannelSort.RECENT: "created_at",
        }[self]

    @classmethod
    def default(cls) -> "ChannelSort":
        return cls.SUBSCRIBERS


class VideoSort(RankedSort):
    VIEWS = "views"
    LIKES = "likes"
    RECENT = "recent"

    @property
    def field(self) -> str:
        return {
            VideoSort.VIEWS: "views",
            VideoSort.LIKES: "likes_count",
            VideoSort.RECENT: "created_at",
        }[self]

    @classmethod
    def default(cls) -> "VideoSort":
        return cls.VIEWS


class DiscoveryService:
    """
    Channel and video discovery.

    Both listings compose the same stages: optional text search, relation
    joins with viewer flags, public projection, single-key descending sort,
    pagination.
    """

    def __init__(
        self,
        store: EntityStore,
        compiler: Optional[PipelineCompiler] = None,
        resolver: Optional[ViewerContextResolver] = None,
    ) -> None:
        self._compiler = compiler or PipelineCompiler(store)
        self._resolver = resolver or ViewerContextResolver()

    async def discover_channels(
        self,
        page: PageRequest,
        viewer_id: Optional[str] = None,
        sort: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page[ChannelSummary]:
        ranking = ChannelSort.parse(sort)

        pipeline = Pipeline(Collections.USERS)
        if search:
            pipeline.match(TextSearch(CHANNEL_SEARCH_FIELDS, search))
        self._resolver.apply(pipeline, CHANNEL_SUBSCRIBERS, CHANNEL_VIDEOS)
        pipeline.project(CHANNEL_CARD).sort(ranking.field)

        items, meta = await self._compiler.fetch_page(pipeline, page, viewer_id)
        logger.debug(f"Channel discovery sort={ranking.value} returned {len(items)} channels")
        return Page[ChannelSummary](
            items=[ChannelSummary.model_validate(item) for item in items],
            pagination=meta,
        )

    async def discover_videos(
        self,
        page: PageRequest,
        viewer_id: Optional[str] = None,
        sort: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page[VideoView]:
        """Published videos only, whoever the viewer is."""
        ranking = VideoSort.parse(sort)

        predicate = Eq("is_published", True)
        if search:
            predicate = all_of(predicate, video_search(search))
        pipeline = video_cards(self._resolver, predicate).sort(ranking.field)

        items, meta = await self._compiler.fetch_page(pipeline, page, viewer_id)
        return Page[VideoView](
            items=[VideoView.model_validate(item) for item in items],
            pagination=meta,
        )
