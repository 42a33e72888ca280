"""Video library API routes — subscription-gated, ownership-scoped."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, require_active_subscription
from app.models.user import User
from app.schemas.video import VideoCreate, VideoDeleteResponse, VideoListResponse, VideoResponse
from app.services.video_service import (
    DuplicateVideoError,
    InvalidVideoUrlError,
    VideoNotFoundError,
    add_video,
    delete_video,
    list_videos,
)

router = APIRouter(prefix="/api/v1/videos", tags=["videos"])


@router.get("", response_model=VideoListResponse, summary="List the caller's videos")
async def get_videos(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_active_subscription),
) -> VideoListResponse:
    """Return the caller's library, newest first."""
    videos = await list_videos(db, current_user)
    return VideoListResponse(videos=[VideoResponse.model_validate(v) for v in videos])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Add a YouTube video to the library",
)
async def create_video(
    body: VideoCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_active_subscription),
) -> dict[str, VideoResponse]:
    """Add a video. URL and YouTube ID must be new across every library."""
    try:
        video = await add_video(db, current_user, url=body.url, title=body.title)
    except (InvalidVideoUrlError, DuplicateVideoError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e
    return {"video": VideoResponse.model_validate(video)}


@router.delete("", response_model=VideoDeleteResponse, summary="Delete a video by id")
async def remove_video(
    video_id: str | None = Query(None, alias="id"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_active_subscription),
) -> VideoDeleteResponse:
    """Delete one of the caller's videos, identified by the ``id`` query parameter."""
    if not video_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Video ID is required",
        )

    try:
        parsed_id = uuid.UUID(video_id)
        await delete_video(db, current_user, parsed_id)
    except (ValueError, VideoNotFoundError) as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video not found",
        ) from e

    return VideoDeleteResponse()
