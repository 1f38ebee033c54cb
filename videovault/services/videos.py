"""
Video service - publishing, viewer-scoped reads and owner-gated mutations.
"""
import logging
from typing import Optional, Tuple

from videovault.core.exceptions import NotFoundError, UpstreamError
from videovault.core.identifiers import require_valid_id
from videovault.models.interfaces import EntityStore
from videovault.models.schemas import (
    Collections,
    Page,
    PublishState,
    Video,
    VideoCreate,
    VideoUpdate,
    VideoView,
)
from videovault.pipeline.compiler import Pipeline, PipelineCompiler
from videovault.pipeline.pagination import PageRequest
from videovault.pipeline.stages import Eq, In, all_of
from videovault.pipeline.viewer import VIDEO_LIKES, ViewerContextResolver
from videovault.services.media import MediaService
from videovault.services.ownership import Action, owner_gated
from videovault.services.queries import (
    VIDEO_DETAIL,
    owner_with_subscriptions,
    video_cards,
    video_search,
    visible_to,
    with_owner,
)

logger = logging.getLogger(__name__)

# Accepted `sort_by` values (wire and field names) -> stored field
SORTABLE_FIELDS = {
    "createdAt": "created_at",
    "created_at": "created_at",
    "views": "views",
    "duration": "duration",
    "title": "title",
}
DEFAULT_SORT_FIELD = "created_at"


class VideoService:
    """
    Video operations.

    Responsibilities:
    - Paginated, viewer-scoped listings and detail reads
    - Publishing with media upload through MediaService
    - Owner-gated update, delete (with cascade) and publish toggle
    """

    def __init__(
        self,
        store: EntityStore,
        media: MediaService,
        compiler: Optional[PipelineCompiler] = None,
        resolver: Optional[ViewerContextResolver] = None,
    ) -> None:
        self._store = store
        self._media = media
        self._compiler = compiler or PipelineCompiler(store)
        self._resolver = resolver or ViewerContextResolver()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def list_videos(
        self,
        page: PageRequest,
        viewer_id: Optional[str] = None,
        query: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_type: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Page[VideoView]:
        """
        List videos newest first (or by `sort_by`/`sort_type`).

        Only Published videos are listed, except that a listing scoped to the
        viewer's own channel also includes the viewer's drafts.
        """
        predicate = Eq("is_published", True)
        if user_id:
            require_valid_id(user_id, "userId")
            if user_id == viewer_id:
                predicate = visible_to(viewer_id)
            predicate = all_of(predicate, Eq("owner", user_id))
        if query:
            predicate = all_of(predicate, video_search(query))

        field, descending = self._resolve_sort(sort_by, sort_type)
        pipeline = video_cards(self._resolver, predicate).sort(field, descending)

        items, meta = await self._compiler.fetch_page(pipeline, page, viewer_id)
        return Page[VideoView](
            items=[VideoView.model_validate(item) for item in items],
            pagination=meta,
        )

    async def get_video(self, video_id: str, viewer_id: Optional[str] = None) -> VideoView:
        """
        Video detail for the viewer.

        Drafts are returned to their owner only. A successful read increments
        the view count and records the video in the viewer's watch history.
        """
        require_valid_id(video_id, "videoId")

        pipeline = with_owner(
            Pipeline(Collections.VIDEOS).match(all_of(Eq("id", video_id), visible_to(viewer_id))),
            owner_with_subscriptions(self._resolver),
        )
        pipeline = self._resolver.apply(pipeline, VIDEO_LIKES).project(VIDEO_DETAIL)

        video = await self._compiler.fetch_one(pipeline, viewer_id)
        if video is None:
            raise NotFoundError("video", video_id)

        await self._store.collection(Collections.VIDEOS).find_by_id_and_update(
            video_id, increment={"views": 1}
        )
        if viewer_id is not None:
            await self._store.collection(Collections.USERS).find_by_id_and_update(
                viewer_id, add_to_set={"watch_history": video_id}
            )

        return VideoView.model_validate(video)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def publish_video(self, viewer_id: str, payload: VideoCreate) -> Video:
        """
        Upload media and create the video record.

        Any upload failure aborts the whole operation; assets uploaded before
        the failure are discarded so no record references a failed upload.
        Videos without a thumbnail start as drafts.
        """
        video_asset = await self._media.upload(payload.video_file_path, resource_type="video")

        thumbnail_url: Optional[str] = None
        if payload.thumbnail_path:
            try:
                thumbnail = await self._media.upload(payload.thumbnail_path, resource_type="image")
            except UpstreamError:
                await self._media.discard(video_asset.url, resource_type="video")
                raise
            thumbnail_url = thumbnail.url

        video = Video(
            owner=viewer_id,
            title=payload.title,
            description=payload.description,
            video_file=video_asset.url,
            thumbnail=thumbnail_url,
            duration=video_asset.duration or 0,
            is_published=payload.is_published and thumbnail_url is not None,
        )
        created = await self._store.collection(Collections.VIDEOS).create(video.model_dump())

        logger.info(
            f"Video {video.id} created by {viewer_id} as {video.state.value}",
            extra={"video_id": video.id, "viewer_id": viewer_id},
        )
        return Video.model_validate(created)

    @owner_gated(Collections.VIDEOS, "video", Action.UPDATE)
    async def update_video(self, video: dict, viewer_id: str, payload: VideoUpdate) -> Video:
        """Update title/description and optionally replace the thumbnail."""
        old_thumbnail = video.get("thumbnail")
        thumbnail_url = old_thumbnail

        if payload.thumbnail_path:
            thumbnail = await self._media.upload(payload.thumbnail_path, resource_type="image")
            thumbnail_url = thumbnail.url

        updated = await self._store.collection(Collections.VIDEOS).find_by_id_and_update(
            video["id"],
            set_fields={
                "title": payload.title,
                "description": payload.description,
                "thumbnail": thumbnail_url,
            },
        )
        if updated is None:
            raise NotFoundError("video", video["id"])

        if payload.thumbnail_path and old_thumbnail:
            await self._media.discard(old_thumbnail, resource_type="image")

        return Video.model_validate(updated)

    @owner_gated(Collections.VIDEOS, "video", Action.DELETE)
    async def delete_video(self, video: dict, viewer_id: str) -> None:
        """
        Delete a video and everything that references it.

        Remote asset deletion is best effort. Failures while removing likes
        (on the video and on its comments), comments or playlist references
        are surfaced as UpstreamError.
        """
        video_id = video["id"]
        deleted = await self._store.collection(Collections.VIDEOS).find_by_id_and_delete(video_id)
        if deleted is None:
            raise NotFoundError("video", video_id)

        await self._media.discard(video.get("thumbnail"), resource_type="image")
        await self._media.discard(video.get("video_file"), resource_type="video")

        try:
            comment_ids = tuple(
                comment["id"]
                for comment in await self._store.collection(Collections.COMMENTS).find({"video": video_id})
            )
            likes = await self._store.collection(Collections.LIKES).delete_many({"video": video_id})
            if comment_ids:
                likes += await self._store.collection(Collections.LIKES).delete_many(
                    In("comment", comment_ids)
                )
            comments = await self._store.collection(Collections.COMMENTS).delete_many({"video": video_id})
            playlists = await self._store.collection(Collections.PLAYLISTS).update_many(
                {}, pull={"videos": video_id}
            )
        except Exception as e:
            logger.error(
                f"Cascade cleanup failed for deleted video {video_id}: {e}",
                extra={"video_id": video_id},
            )
            raise UpstreamError("entity_store", f"cleanup of video {video_id} failed: {e}") from e

        logger.info(
            f"Video {video_id} deleted: likes={likes}, comments={comments}, "
            f"playlists_touched={playlists}",
            extra={"video_id": video_id, "viewer_id": viewer_id},
        )

    @owner_gated(Collections.VIDEOS, "video", Action.TOGGLE_PUBLISH)
    async def toggle_publish_status(self, video: dict, viewer_id: str) -> Video:
        """Flip Draft <-> Published."""
        current = PublishState.of(video.get("is_published", False))
        target = current.toggled()

        updated = await self._store.collection(Collections.VIDEOS).find_by_id_and_update(
            video["id"], set_fields={"is_published": target is PublishState.PUBLISHED}
        )
        if updated is None:
            raise NotFoundError("video", video["id"])

        logger.info(
            f"Video {video['id']} moved {current.value} -> {target.value}",
            extra={"video_id": video["id"], "viewer_id": viewer_id},
        )
        return Video.model_validate(updated)

    @staticmethod
    def _resolve_sort(sort_by: Optional[str], sort_type: Optional[str]) -> Tuple[str, bool]:
        field = SORTABLE_FIELDS.get(sort_by or "")
        if field is None:
            return DEFAULT_SORT_FIELD, True
        return field, (sort_type or "desc").lower() != "asc"
