"""
Video API router.
Listing, detail, publishing and owner-gated mutations.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from videovault.api.dependencies import (
    get_page_request,
    get_video_service,
    get_viewer_id,
    require_viewer,
)
from videovault.models.schemas import (
    ApiResponse,
    Page,
    Video,
    VideoCreate,
    VideoUpdate,
    VideoView,
)
from videovault.pipeline.pagination import PageRequest
from videovault.services.videos import VideoService

router = APIRouter(prefix="/videos", tags=["videos"])


@router.get(
    "",
    response_model=ApiResponse[Page[VideoView]],
    summary="List Videos",
    description="""
    Paginated list of published videos, newest first.

    - `query` searches title and description (case-insensitive)
    - `userId` scopes the list to one channel; the channel owner also sees drafts
    - `sortBy` in createdAt, views, duration, title with `sortType` asc/desc
    """,
)
async def list_videos(
    page: PageRequest = Depends(get_page_request),
    query: Optional[str] = Query(default=None, description="Search text"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_type: Optional[str] = Query(default=None, alias="sortType"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    service: VideoService = Depends(get_video_service),
) -> ApiResponse[Page[VideoView]]:
    videos = await service.list_videos(
        page,
        viewer_id=viewer_id,
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        user_id=user_id,
    )
    return ApiResponse(data=videos, message="Videos fetched successfully")


@router.post(
    "",
    response_model=ApiResponse[Video],
    status_code=status.HTTP_201_CREATED,
    summary="Publish Video",
)
async def publish_video(
    payload: VideoCreate,
    viewer_id: str = Depends(require_viewer),
    service: VideoService = Depends(get_video_service),
) -> ApiResponse[Video]:
    video = await service.publish_video(viewer_id, payload)
    return ApiResponse(status_code=201, data=video, message="Video uploaded successfully")


@router.get(
    "/{video_id}",
    response_model=ApiResponse[VideoView],
    summary="Get Video",
    responses={404: {"description": "Video not found or not visible to the viewer"}},
)
async def get_video(
    video_id: str,
    viewer_id: Optional[str] = Depends(get_viewer_id),
    service: VideoService = Depends(get_video_service),
) -> ApiResponse[VideoView]:
    video = await service.get_video(video_id, viewer_id)
    return ApiResponse(data=video, message="Video fetched successfully")


@router.patch("/{video_id}", response_model=ApiResponse[Video], summary="Update Video")
async def update_video(
    video_id: str,
    payload: VideoUpdate,
    viewer_id: str = Depends(require_viewer),
    service: VideoService = Depends(get_video_service),
) -> ApiResponse[Video]:
    video = await service.update_video(video_id, viewer_id, payload)
    return ApiResponse(data=video, message="Video updated successfully")


@router.delete("/{video_id}", response_model=ApiResponse[dict], summary="Delete Video")
async def delete_video(
    video_id: str,
    viewer_id: str = Depends(require_viewer),
    service: VideoService = Depends(get_video_service),
) -> ApiResponse[dict]:
    await service.delete_video(video_id, viewer_id)
    return ApiResponse(data={}, message="Video deleted successfully")


@router.patch(
    "/toggle/publish/{video_id}",
    response_model=ApiResponse[Video],
    summary="Toggle Publish Status",
)
async def toggle_publish_status(
    video_id: str,
    viewer_id: str = Depends(require_viewer),
    service: VideoService = Depends(get_video_service),
) -> ApiResponse[Video]:
    video = await service.toggle_publish_status(video_id, viewer_id)
    return ApiResponse(data=video, message="Video publish status toggled successfully")
