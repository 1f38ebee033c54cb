"""
Reusable pipeline fragments shared by the listing services.
"""
from typing import Optional

from videovault.models.schemas import Collections
from videovault.pipeline.compiler import Pipeline
from videovault.pipeline.stages import (
    AnyOf,
    Eq,
    Predicate,
    Project,
    TextSearch,
    first_of,
)
from videovault.pipeline.viewer import CHANNEL_SUBSCRIBERS, VIDEO_LIKES, ViewerContextResolver

# Never includes email, watch history or any credential field
PUBLIC_USER_FIELDS = ("id", "username", "fullname", "avatar")

OWNER_SUMMARY = Project(PUBLIC_USER_FIELDS)

OWNER_WITH_SUBSCRIPTIONS = Project(
    PUBLIC_USER_FIELDS + ("subscribers_count", "is_subscribed")
)

VIDEO_FIELDS = (
    "id",
    "title",
    "description",
    "video_file",
    "thumbnail",
    "duration",
    "views",
    "is_published",
    "created_at",
    "likes_count",
    "is_liked",
)

VIDEO_CARD = Project(VIDEO_FIELDS, nested={"owner": OWNER_SUMMARY})

VIDEO_DETAIL = Project(VIDEO_FIELDS, nested={"owner": OWNER_WITH_SUBSCRIPTIONS})

VIDEO_SEARCH_FIELDS = ("title", "description")


def visible_to(viewer_id: Optional[str]) -> Predicate:
    """Published videos, plus the viewer's own drafts."""
    published = Eq("is_published", True)
    if viewer_id is None:
        return published
    return AnyOf((published, Eq("owner", viewer_id)))


def video_search(query: str) -> Predicate:
    return TextSearch(VIDEO_SEARCH_FIELDS, query)


def with_owner(pipeline: Pipeline, owner_pipeline: Optional[Pipeline] = None) -> Pipeline:
    """
    Join the video owner and collapse it to a single document.
    A video whose owner no longer exists gets `owner = None`.
    """
    owner_pipeline = owner_pipeline or Pipeline(Collections.USERS).project(OWNER_SUMMARY)
    return pipeline.lookup(
        Collections.USERS, "owner", "id", "owner_docs", owner_pipeline.stages()
    ).add_fields(owner=first_of("owner_docs"))


def video_cards(resolver: ViewerContextResolver, predicate: Predicate) -> Pipeline:
    """Videos matching `predicate` with owner summary, likes count and like flag."""
    pipeline = with_owner(Pipeline(Collections.VIDEOS).match(predicate))
    return resolver.apply(pipeline, VIDEO_LIKES).project(VIDEO_CARD)


def owner_with_subscriptions(resolver: ViewerContextResolver) -> Pipeline:
    """Sub-pipeline for owner joins that need subscriber count and flag."""
    return resolver.apply(Pipeline(Collections.USERS), CHANNEL_SUBSCRIBERS).project(
        OWNER_WITH_SUBSCRIPTIONS
    )
