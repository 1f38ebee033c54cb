"""
Viewer context resolver.

Adds relation counts and viewer-relative flags to any pipeline whose
documents expose a relation join (likes, subscriptions, owned videos).
Flags read the viewer id from the evaluation context at execution time,
so the same compiled pipeline serves anonymous and signed-in viewers.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from videovault.models.schemas import Collections
from videovault.pipeline.compiler import Pipeline
from videovault.pipeline.stages import Eq, Expression, Match, Stage, size_of, viewer_in


@dataclass(frozen=True)
class Relation:
    """
    A join from the pipeline's documents into a relation collection.

    Attributes:
        collection: Relation collection to join
        foreign_field: Field in the relation pointing back at the document
        as_field: Name of the joined list on the document
        count_field: Computed size of the joined list
        member_field: Field holding the acting user (for the viewer flag)
        flag_field: Computed viewer-membership flag, if any
        local_field: Document field matched against `foreign_field`
        pipeline: Sub-pipeline applied to the joined records
    """

    collection: str
    foreign_field: str
    as_field: str
    count_field: str
    member_field: Optional[str] = None
    flag_field: Optional[str] = None
    local_field: str = "id"
    pipeline: Tuple[Stage, ...] = ()


VIDEO_LIKES = Relation(
    collection=Collections.LIKES,
    foreign_field="video",
    as_field="likes",
    count_field="likes_count",
    member_field="liked_by",
    flag_field="is_liked",
)

CHANNEL_SUBSCRIBERS = Relation(
    collection=Collections.SUBSCRIPTIONS,
    foreign_field="channel",
    as_field="subscribers",
    count_field="subscribers_count",
    member_field="subscriber",
    flag_field="is_subscribed",
)

CHANNEL_VIDEOS = Relation(
    collection=Collections.VIDEOS,
    foreign_field="owner",
    as_field="videos",
    count_field="videos_count",
    pipeline=(Match(Eq("is_published", True)),),
)


class ViewerContextResolver:
    """Composes relation joins and viewer flags onto pipelines."""

    def apply(self, pipeline: Pipeline, *relations: Relation) -> Pipeline:
        computed: Dict[str, Expression] = {}
        for relation in relations:
            pipeline.lookup(
                relation.collection,
                relation.local_field,
                relation.foreign_field,
                relation.as_field,
                relation.pipeline,
            )
            computed[relation.count_field] = size_of(relation.as_field)
            if relation.flag_field and relation.member_field:
                computed[relation.flag_field] = viewer_in(
                    relation.as_field, relation.member_field
                )
        return pipeline.add_fields(computed)
