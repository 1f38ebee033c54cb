"""
Playlist service - owner-gated playlist management and nested playlist views.
"""
import logging
from typing import Optional

from videovault.core.exceptions import NotFoundError
from videovault.core.identifiers import require_valid_id
from videovault.models.interfaces import EntityStore
from videovault.models.schemas import (
    Collections,
    Page,
    Playlist,
    PlaylistCreate,
    PlaylistUpdate,
    PlaylistView,
)
from videovault.pipeline.compiler import Pipeline, PipelineCompiler
from videovault.pipeline.pagination import PageRequest
from videovault.pipeline.stages import Eq, Predicate, Project, all_of, size_of, sum_of
from videovault.pipeline.viewer import ViewerContextResolver
from videovault.services.ownership import Action, owner_gated
from videovault.services.queries import video_cards, visible_to, with_owner

logger = logging.getLogger(__name__)

PLAYLIST_VIEW = Project(
    (
        "id",
        "name",
        "description",
        "created_at",
        "updated_at",
        "total_videos",
        "total_views",
        "owner",
        "videos",
    )
)


class PlaylistService:
    """Playlist CRUD, set-like membership and nested reads."""

    def __init__(
        self,
        store: EntityStore,
        compiler: Optional[PipelineCompiler] = None,
        resolver: Optional[ViewerContextResolver] = None,
    ) -> None:
        self._store = store
        self._compiler = compiler or PipelineCompiler(store)
        self._resolver = resolver or ViewerContextResolver()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_playlist(self, playlist_id: str, viewer_id: Optional[str] = None) -> PlaylistView:
        require_valid_id(playlist_id, "playlistId")

        playlist = await self._compiler.fetch_one(
            self._playlist_views(Eq("id", playlist_id), viewer_id), viewer_id
        )
        if playlist is None:
            raise NotFoundError("playlist", playlist_id)
        return PlaylistView.model_validate(playlist)

    async def get_user_playlists(
        self,
        user_id: str,
        page: PageRequest,
        viewer_id: Optional[str] = None,
    ) -> Page[PlaylistView]:
        """Playlists owned by `user_id`, most recently updated first."""
        require_valid_id(user_id, "userId")

        pipeline = self._playlist_views(Eq("owner", user_id), viewer_id).sort("updated_at")
        items, meta = await self._compiler.fetch_page(pipeline, page, viewer_id)
        return Page[PlaylistView](
            items=[PlaylistView.model_validate(item) for item in items],
            pagination=meta,
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_playlist(self, viewer_id: str, payload: PlaylistCreate) -> Playlist:
        playlist = Playlist(owner=viewer_id, name=payload.name, description=payload.description)
        created = await self._store.collection(Collections.PLAYLISTS).create(playlist.model_dump())
        logger.info(
            f"Playlist {playlist.id} created by {viewer_id}",
            extra={"playlist_id": playlist.id, "viewer_id": viewer_id},
        )
        return Playlist.model_validate(created)

    @owner_gated(Collections.PLAYLISTS, "playlist", Action.UPDATE)
    async def update_playlist(self, playlist: dict, viewer_id: str, payload: PlaylistUpdate) -> Playlist:
        updated = await self._store.collection(Collections.PLAYLISTS).find_by_id_and_update(
            playlist["id"],
            set_fields={"name": payload.name, "description": payload.description},
        )
        if updated is None:
            raise NotFoundError("playlist", playlist["id"])
        return Playlist.model_validate(updated)

    @owner_gated(Collections.PLAYLISTS, "playlist", Action.DELETE)
    async def delete_playlist(self, playlist: dict, viewer_id: str) -> None:
        await self._store.collection(Collections.PLAYLISTS).find_by_id_and_delete(playlist["id"])
        logger.info(
            f"Playlist {playlist['id']} deleted",
            extra={"playlist_id": playlist["id"], "viewer_id": viewer_id},
        )

    async def add_video(self, playlist_id: str, video_id: str, viewer_id: str) -> Playlist:
        """Add a video; a no-op if the playlist already contains it."""
        require_valid_id(video_id, "videoId")
        return await self._add_video(playlist_id, viewer_id, video_id)

    async def remove_video(self, playlist_id: str, video_id: str, viewer_id: str) -> Playlist:
        """Remove a video; a no-op if the playlist does not contain it."""
        require_valid_id(video_id, "videoId")
        return await self._remove_video(playlist_id, viewer_id, video_id)

    @owner_gated(Collections.PLAYLISTS, "playlist", Action.ADD_VIDEO)
    async def _add_video(self, playlist: dict, viewer_id: str, video_id: str) -> Playlist:
        video = await self._store.collection(Collections.VIDEOS).find_one(
            all_of(Eq("id", video_id), visible_to(viewer_id))
        )
        if video is None:
            raise NotFoundError("video", video_id)

        updated = await self._store.collection(Collections.PLAYLISTS).find_by_id_and_update(
            playlist["id"], add_to_set={"videos": video_id}
        )
        if updated is None:
            raise NotFoundError("playlist", playlist["id"])
        return Playlist.model_validate(updated)

    @owner_gated(Collections.PLAYLISTS, "playlist", Action.REMOVE_VIDEO)
    async def _remove_video(self, playlist: dict, viewer_id: str, video_id: str) -> Playlist:
        updated = await self._store.collection(Collections.PLAYLISTS).find_by_id_and_update(
            playlist["id"], pull={"videos": video_id}
        )
        if updated is None:
            raise NotFoundError("playlist", playlist["id"])
        return Playlist.model_validate(updated)

    def _playlist_views(self, predicate: Predicate, viewer_id: Optional[str]) -> Pipeline:
        """
        Playlists with owner summary and their videos (in playlist order),
        each video carrying its own owner summary. Drafts of other users
        are hidden.
        """
        videos = video_cards(self._resolver, visible_to(viewer_id))
        return (
            with_owner(Pipeline(Collections.PLAYLISTS).match(predicate))
            .lookup(Collections.VIDEOS, "videos", "id", "videos", videos.stages())
            .add_fields(
                total_videos=size_of("videos"),
                total_views=sum_of("videos", "views"),
            )
            .project(PLAYLIST_VIEW)
        )

