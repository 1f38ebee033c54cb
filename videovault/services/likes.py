"""
Like service - relation toggle mutator and liked-video listing.
"""
import logging
from typing import Optional

from videovault.core.exceptions import NotFoundError
from videovault.core.identifiers import require_valid_id
from videovault.models.interfaces import EntityStore
from videovault.models.schemas import (
    Collections,
    Like,
    LikedVideo,
    LikeTarget,
    Page,
    ToggleLikeResult,
)
from videovault.pipeline.compiler import Pipeline, PipelineCompiler
from videovault.pipeline.pagination import PageRequest
from videovault.pipeline.stages import Eq, Exists, Project, all_of, first_of
from videovault.pipeline.viewer import ViewerContextResolver
from videovault.services.queries import video_cards, visible_to

logger = logging.getLogger(__name__)


class LikeService:
    """Toggles likes on videos, comments and tweets."""

    def __init__(
        self,
        store: EntityStore,
        compiler: Optional[PipelineCompiler] = None,
        resolver: Optional[ViewerContextResolver] = None,
    ) -> None:
        self._store = store
        self._compiler = compiler or PipelineCompiler(store)
        self._resolver = resolver or ViewerContextResolver()

    async def toggle_like(
        self,
        target_type: LikeTarget,
        target_id: str,
        viewer_id: str,
    ) -> ToggleLikeResult:
        """
        Like the target if the viewer has not liked it yet, otherwise unlike it.

        The existence check and the write are one conditional store operation,
        so two toggles in sequence always restore the original state.

        Raises:
            ValidationError: If target_id is malformed
            NotFoundError: If the target does not exist (or is a draft of another user)
        """
        require_valid_id(target_id, f"{target_type.value}Id")
        await self._require_target(target_type, target_id, viewer_id)

        key = {target_type.value: target_id, "liked_by": viewer_id}
        like = Like(liked_by=viewer_id, **{target_type.value: target_id})
        is_liked = await self._store.collection(Collections.LIKES).toggle(key, like.model_dump())

        logger.info(
            f"{target_type.value.capitalize()} {target_id} "
            f"{'liked' if is_liked else 'unliked'} by {viewer_id}",
            extra={"viewer_id": viewer_id},
        )
        return ToggleLikeResult(target_type=target_type, target_id=target_id, is_liked=is_liked)

    async def get_liked_videos(self, viewer_id: str, page: PageRequest) -> Page[LikedVideo]:
        """
        The viewer's liked videos, most recent like first.

        Likes whose video is no longer visible to the viewer are left out
        of both the page and the total.
        """
        videos = video_cards(self._resolver, visible_to(viewer_id))
        pipeline = (
            Pipeline(Collections.LIKES)
            .match(all_of(Eq("liked_by", viewer_id), Exists("video")))
            .lookup(Collections.VIDEOS, "video", "id", "video_docs", videos.stages())
            .add_fields(video=first_of("video_docs"))
            .where(Exists("video"))
            .project(Project(("created_at", "video")))
            .sort("created_at")
        )
        items, meta = await self._compiler.fetch_page(pipeline, page, viewer_id)
        return Page[LikedVideo](
            items=[
                LikedVideo.model_validate({"liked_at": item["created_at"], "video": item["video"]})
                for item in items
            ],
            pagination=meta,
        )

    async def _require_target(self, target_type: LikeTarget, target_id: str, viewer_id: str) -> None:
        collection = self._store.collection(target_type.collection)
        if target_type is LikeTarget.VIDEO:
            target = await collection.find_one(all_of(Eq("id", target_id), visible_to(viewer_id)))
        else:
            target = await collection.find_by_id(target_id)
        if target is None:
            raise NotFoundError(target_type.value, target_id)
