"""Pipeline package - declarative joined reads over the entity store."""
from .compiler import Pipeline, PipelineCompiler
from .pagination import PageRequest
from .viewer import (
    CHANNEL_SUBSCRIBERS,
    CHANNEL_VIDEOS,
    VIDEO_LIKES,
    Relation,
    ViewerContextResolver,
)

__all__ = [
    "CHANNEL_SUBSCRIBERS",
    "CHANNEL_VIDEOS",
    "PageRequest",
    "Pipeline",
    "PipelineCompiler",
    "Relation",
    "VIDEO_LIKES",
    "ViewerContextResolver",
]
