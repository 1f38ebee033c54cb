"""
Discovery API router.
Implements ranked channel and video discovery.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from videovault.api.dependencies import get_discovery_service, get_page_request, get_viewer_id
from videovault.models.schemas import ApiResponse, ChannelSummary, Page, VideoView
from videovault.pipeline.pagination import PageRequest
from videovault.services.discovery import DiscoveryService

router = APIRouter(prefix="/discover", tags=["discover"])


@router.get(
    "/channels",
    response_model=ApiResponse[Page[ChannelSummary]],
    summary="Discover Channels",
    description="""
    Channels ranked for discovery.

    **Sort keys:** `subscribers` (default), `videos`, `recent`.
    Unknown keys fall back to `subscribers`.

    `search` matches username or full name, case-insensitive.
    `isSubscribed` is always false for anonymous requests.
    """,
    responses={400: {"description": "Invalid pagination parameters"}},
)
async def discover_channels(
    page: PageRequest = Depends(get_page_request),
    sort: Optional[str] = Query(default="subscribers"),
    search: Optional[str] = Query(default=None),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    service: DiscoveryService = Depends(get_discovery_service),
) -> ApiResponse[Page[ChannelSummary]]:
    channels = await service.discover_channels(page, viewer_id=viewer_id, sort=sort, search=search)
    return ApiResponse(data=channels, message="Channels fetched successfully")


@router.get(
    "/videos",
    response_model=ApiResponse[Page[VideoView]],
    summary="Discover Videos",
    description="""
    Published videos ranked for discovery.

    **Sort keys:** `views` (default), `likes`, `recent`.
    """,
)
async def discover_videos(
    page: PageRequest = Depends(get_page_request),
    sort: Optional[str] = Query(default="views"),
    search: Optional[str] = Query(default=None),
    viewer_id: Optional[str] = Depends(get_viewer_id),
    service: DiscoveryService = Depends(get_discovery_service),
) -> ApiResponse[Page[VideoView]]:
    videos = await service.discover_videos(page, viewer_id=viewer_id, sort=sort, search=search)
    return ApiResponse(data=videos, message="Videos fetched successfully")
