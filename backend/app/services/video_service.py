"""Video library service — per-user CRUD with global de-duplication."""

import logging
import uuid

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.models.video import Video
from app.services.youtube import extract_youtube_id, normalise_url

logger = logging.getLogger(__name__)


class VideoLibraryError(Exception):
    """Base class for video library failures."""


class InvalidVideoUrlError(VideoLibraryError):
    def __init__(self) -> None:
        super().__init__("Invalid YouTube URL")


class DuplicateVideoError(VideoLibraryError):
    def __init__(self) -> None:
        super().__init__("Video already exists in the library")


class VideoNotFoundError(VideoLibraryError):
    def __init__(self) -> None:
        super().__init__("Video not found")


async def list_videos(db: AsyncSession, user: User) -> list[Video]:
    """Return the user's videos, newest first."""
    result = await db.execute(
        select(Video).where(Video.user_id == user.id).order_by(Video.created_at.desc(), Video.id)
    )
    return list(result.scalars().all())


async def add_video(db: AsyncSession, user: User, url: str, title: str) -> Video:
    """Add a video to the user's library.

    Raises:
        InvalidVideoUrlError: ``url`` is not a recognised YouTube link.
        DuplicateVideoError: The URL or its YouTube ID is already in anyone's library.
    """
    url = normalise_url(url)
    youtube_id = extract_youtube_id(url)
    if youtube_id is None:
        raise InvalidVideoUrlError()

    result = await db.execute(
        select(Video.id).where(or_(Video.url == url, Video.youtube_id == youtube_id)).limit(1)
    )
    if result.scalar_one_or_none() is not None:
        raise DuplicateVideoError()

    video = Video(user_id=user.id, url=url, youtube_id=youtube_id, title=title)
    db.add(video)
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same video.
        raise DuplicateVideoError() from None
    await db.refresh(video)

    logger.info("User %s added video %s", user.id, youtube_id)
    return video


async def delete_video(db: AsyncSession, user: User, video_id: uuid.UUID) -> None:
    """Delete one of the user's videos.

    Raises:
        VideoNotFoundError: No such video, or it belongs to someone else.
    """
    result = await db.execute(
        select(Video).where(Video.id == video_id, Video.user_id == user.id)
    )
    video = result.scalar_one_or_none()
    if video is None:
        raise VideoNotFoundError()

    await db.delete(video)
    await db.flush()
    logger.info("User %s deleted video %s", user.id, video.youtube_id)
