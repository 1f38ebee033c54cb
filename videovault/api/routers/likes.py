"""
Like API router.
Toggle endpoints for videos, comments and tweets, plus the liked-videos list.
"""
from fastapi import APIRouter, Depends

from videovault.api.dependencies import get_like_service, get_page_request, require_viewer
from videovault.models.schemas import (
    ApiResponse,
    LikedVideo,
    LikeTarget,
    Page,
    ToggleLikeResult,
)
from videovault.pipeline.pagination import PageRequest
from videovault.services.likes import LikeService

router = APIRouter(prefix="/likes", tags=["likes"])


async def _toggle(service: LikeService, target: LikeTarget, target_id: str, viewer_id: str) -> ApiResponse[ToggleLikeResult]:
    result = await service.toggle_like(target, target_id, viewer_id)
    verb = "liked" if result.is_liked else "unliked"
    return ApiResponse(data=result, message=f"{target.value.capitalize()} {verb} successfully")


@router.post("/toggle/v/{video_id}", response_model=ApiResponse[ToggleLikeResult], summary="Toggle Video Like")
async def toggle_video_like(
    video_id: str,
    viewer_id: str = Depends(require_viewer),
    service: LikeService = Depends(get_like_service),
) -> ApiResponse[ToggleLikeResult]:
    return await _toggle(service, LikeTarget.VIDEO, video_id, viewer_id)


@router.post("/toggle/c/{comment_id}", response_model=ApiResponse[ToggleLikeResult], summary="Toggle Comment Like")
async def toggle_comment_like(
    comment_id: str,
    viewer_id: str = Depends(require_viewer),
    service: LikeService = Depends(get_like_service),
) -> ApiResponse[ToggleLikeResult]:
    return await _toggle(service, LikeTarget.COMMENT, comment_id, viewer_id)


@router.post("/toggle/t/{tweet_id}", response_model=ApiResponse[ToggleLikeResult], summary="Toggle Tweet Like")
async def toggle_tweet_like(
    tweet_id: str,
    viewer_id: str = Depends(require_viewer),
    service: LikeService = Depends(get_like_service),
) -> ApiResponse[ToggleLikeResult]:
    return await _toggle(service, LikeTarget.TWEET, tweet_id, viewer_id)


@router.get("/videos", response_model=ApiResponse[Page[LikedVideo]], summary="Liked Videos")
async def get_liked_videos(
    page: PageRequest = Depends(get_page_request),
    viewer_id: str = Depends(require_viewer),
    service: LikeService = Depends(get_like_service),
) -> ApiResponse[Page[LikedVideo]]:
    liked = await service.get_liked_videos(viewer_id, page)
    return ApiResponse(data=liked, message="Liked videos fetched successfully")
