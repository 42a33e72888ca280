"""Video model — a YouTube reference in a user's library."""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, UUIDPrimaryKeyMixin


class Video(UUIDPrimaryKeyMixin, Base):
    """A library entry. URL and YouTube ID are unique across all owners."""

    __tablename__ = "videos"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(String(2048), unique=True, nullable=False)
    youtube_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    # Relationships
    user: Mapped["User"] = relationship(back_populates="videos")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, youtube_id={self.youtube_id!r}, user_id={self.user_id})>"
