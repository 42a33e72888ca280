"""Pydantic v2 request/response schemas for the video library."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.security.errors import sanitize_string


class VideoCreate(BaseModel):
    """Schema for adding a video to the library."""

    url: str = Field(..., min_length=1, max_length=2048)
    title: str = Field(..., min_length=1, max_length=255)

    @field_validator("url")
    @classmethod
    def _strip_url(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("URL and title are required")
        return value

    @field_validator("title")
    @classmethod
    def _clean_title(cls, value: str) -> str:
        value = sanitize_string(value, max_length=255)
        if not value:
            raise ValueError("URL and title are required")
        return value


class VideoResponse(BaseModel):
    """A library entry."""

    id: uuid.UUID
    url: str
    youtube_id: str
    title: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VideoListResponse(BaseModel):
    videos: list[VideoResponse]


class VideoDeleteResponse(BaseModel):
    success: bool = True
