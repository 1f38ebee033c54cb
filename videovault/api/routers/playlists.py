"""
Playlist API router.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status

from videovault.api.dependencies import (
    get_page_request,
    get_playlist_service,
    get_viewer_id,
    require_viewer,
)
from videovault.models.schemas import (
    ApiResponse,
    Page,
    Playlist,
    PlaylistCreate,
    PlaylistUpdate,
    PlaylistView,
)
from videovault.pipeline.pagination import PageRequest
from videovault.services.playlists import PlaylistService

router = APIRouter(prefix="/playlists", tags=["playlists"])


@router.post(
    "",
    response_model=ApiResponse[Playlist],
    status_code=status.HTTP_201_CREATED,
    summary="Create Playlist",
)
async def create_playlist(
    payload: PlaylistCreate,
    viewer_id: str = Depends(require_viewer),
    service: PlaylistService = Depends(get_playlist_service),
) -> ApiResponse[Playlist]:
    playlist = await service.create_playlist(viewer_id, payload)
    return ApiResponse(status_code=201, data=playlist, message="Playlist created successfully")


@router.get("/user/{user_id}", response_model=ApiResponse[Page[PlaylistView]], summary="User Playlists")
async def get_user_playlists(
    user_id: str,
    page: PageRequest = Depends(get_page_request),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    service: PlaylistService = Depends(get_playlist_service),
) -> ApiResponse[Page[PlaylistView]]:
    playlists = await service.get_user_playlists(user_id, page, viewer_id)
    return ApiResponse(data=playlists, message="User playlists fetched successfully")


@router.get("/{playlist_id}", response_model=ApiResponse[PlaylistView], summary="Get Playlist")
async def get_playlist(
    playlist_id: str,
    viewer_id: Optional[str] = Depends(get_viewer_id),
    service: PlaylistService = Depends(get_playlist_service),
) -> ApiResponse[PlaylistView]:
    playlist = await service.get_playlist(playlist_id, viewer_id)
    return ApiResponse(data=playlist, message="Playlist fetched successfully")


@router.patch("/{playlist_id}", response_model=ApiResponse[Playlist], summary="Update Playlist")
async def update_playlist(
    playlist_id: str,
    payload: PlaylistUpdate,
    viewer_id: str = Depends(require_viewer),
    service: PlaylistService = Depends(get_playlist_service),
) -> ApiResponse[Playlist]:
    playlist = await service.update_playlist(playlist_id, viewer_id, payload)
    return ApiResponse(data=playlist, message="Playlist updated successfully")


@router.delete("/{playlist_id}", response_model=ApiResponse[dict], summary="Delete Playlist")
async def delete_playlist(
    playlist_id: str,
    viewer_id: str = Depends(require_viewer),
    service: PlaylistService = Depends(get_playlist_service),
) -> ApiResponse[dict]:
    await service.delete_playlist(playlist_id, viewer_id)
    return ApiResponse(data={}, message="Playlist deleted")


@router.patch("/add/{video_id}/{playlist_id}", response_model=ApiResponse[Playlist], summary="Add Video")
async def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    viewer_id: str = Depends(require_viewer),
    service: PlaylistService = Depends(get_playlist_service),
) -> ApiResponse[Playlist]:
    playlist = await service.add_video(playlist_id, video_id, viewer_id)
    return ApiResponse(data=playlist, message="Video added to playlist")


@router.patch("/remove/{video_id}/{playlist_id}", response_model=ApiResponse[Playlist], summary="Remove Video")
async def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    viewer_id: str = Depends(require_viewer),
    service: PlaylistService = Depends(get_playlist_service),
) -> ApiResponse[Playlist]:
    playlist = await service.remove_video(playlist_id, video_id, viewer_id)
    return ApiResponse(data=playlist, message="Video removed from playlist")
