"""
Pipeline compiler.

`Pipeline` is a builder for one read over a collection: a root filter, then
joins, computed fields, a projection, a post-enrichment filter and a single
sort key. `PipelineCompiler` turns it into concrete stages, appends the
pagination window and runs it against the entity store together with a
count of every document the window is drawn from.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from videovault.models.interfaces import EntityStore
from videovault.models.schemas import PaginationMeta
from videovault.pipeline.pagination import PageRequest
from videovault.pipeline.stages import (
    AddFields,
    Expression,
    Limit,
    Lookup,
    Match,
    MatchAll,
    Predicate,
    Project,
    Skip,
    Sort,
    Stage,
    all_of,
)

logger = logging.getLogger(__name__)


class Pipeline:
    """
    Builder for a multi-stage read.

    Usage:
        pipeline = (
            Pipeline("videos")
            .match(Eq("is_published", True))
            .lookup("users", "owner", "id", "owner_docs")
            .add_fields(owner=first_of("owner_docs"))
            .project(VIDEO_FIELDS)
            .sort("created_at")
        )
    """

    def __init__(self, collection: str) -> None:
        self.collection = collection
        self._filter: Predicate = MatchAll()
        self._enrichment: List[Stage] = []
        self._projection: Optional[Project] = None
        self._post_filter: Predicate = MatchAll()
        self._sort: Optional[Sort] = None

    @property
    def filter(self) -> Predicate:
        """Root filter; alone it decides the total when there is no post-filter."""
        return self._filter

    @property
    def has_post_filter(self) -> bool:
        return not isinstance(self._post_filter, MatchAll)

    def match(self, predicate: Predicate) -> "Pipeline":
        self._filter = all_of(self._filter, predicate)
        return self

    def lookup(
        self,
        from_collection: str,
        local_field: str,
        foreign_field: str,
        as_field: str,
        pipeline: Sequence[Stage] = (),
    ) -> "Pipeline":
        self._enrichment.append(
            Lookup(from_collection, local_field, foreign_field, as_field, tuple(pipeline))
        )
        return self

    def add_fields(self, fields: Optional[Mapping[str, Expression]] = None, **named: Expression) -> "Pipeline":
        computed: Dict[str, Expression] = dict(fields or {})
        computed.update(named)
        self._enrichment.append(AddFields(computed))
        return self

    def project(self, projection: Project) -> "Pipeline":
        self._projection = projection
        return self

    def where(self, predicate: Predicate) -> "Pipeline":
        """
        Filter on enriched fields. Applied before the pagination window; the
        total-match count then runs the enrichment too.
        """
        self._post_filter = all_of(self._post_filter, predicate)
        return self

    def sort(self, field: str, descending: bool = True) -> "Pipeline":
        self._sort = Sort(field, descending)
        return self

    def stages(self, page: Optional[PageRequest] = None) -> Tuple[Stage, ...]:
        """Compile to stages: filter, joins/computed, post-filter, projection, sort, window."""
        stages = list(self.count_stages())
        if self._projection is not None:
            stages.append(self._projection)
        if self._sort is not None:
            stages.append(self._sort)
        if page is not None:
            stages.append(Skip(page.skip))
            stages.append(Limit(page.limit))
        return tuple(stages)

    def count_stages(self) -> Tuple[Stage, ...]:
        """Stages that decide which documents are counted: filter, enrichment, post-filter."""
        stages: List[Stage] = []
        if not isinstance(self._filter, MatchAll):
            stages.append(Match(self._filter))
        stages.extend(self._enrichment)
        if self.has_post_filter:
            stages.append(Match(self._post_filter))
        return tuple(stages)


class PipelineCompiler:
    """Executes pipelines against the entity store."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def fetch_page(
        self,
        pipeline: Pipeline,
        page: PageRequest,
        viewer_id: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], PaginationMeta]:
        """
        Run one paginated read.

        The count and the windowed read are separate store calls and may
        observe different snapshots under concurrent writes. With a
        post-filter the count aggregates the enrichment stages, so the total
        only includes documents a page can actually return.
        """
        if pipeline.has_post_filter:
            counted = await self._store.aggregate(
                pipeline.collection, pipeline.count_stages(), viewer_id=viewer_id
            )
            total = len(counted)
        else:
            total = await self._store.count(pipeline.collection, pipeline.filter)
        items = await self._store.aggregate(
            pipeline.collection, pipeline.stages(page), viewer_id=viewer_id
        )
        logger.debug(
            f"Pipeline on '{pipeline.collection}': total={total}, "
            f"page={page.page}, returned={len(items)}"
        )
        return items, page.metadata(total, len(items))

    async def fetch_all(
        self,
        pipeline: Pipeline,
        viewer_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        return await self._store.aggregate(
            pipeline.collection, pipeline.stages(), viewer_id=viewer_id
        )

    async def fetch_one(
        self,
        pipeline: Pipeline,
        viewer_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        items = await self._store.aggregate(
            pipeline.collection, pipeline.stages(PageRequest(page=1, limit=1)), viewer_id=viewer_id
        )
        return items[0] if items else None
