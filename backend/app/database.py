"""Async SQLAlchemy engine, session factory, and declarative base.

PostgreSQL (asyncpg) in every deployed environment. SQLite (aiosqlite) is
accepted for local runs and the test suite; the subscription upsert picks
the matching ``ON CONFLICT`` dialect at runtime.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.config import settings


def _engine_options(url: str) -> dict:
    options: dict = {"echo": settings.debug, "pool_pre_ping": True}
    # SQLite uses its own pool classes, which reject sizing arguments.
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    return options


engine: AsyncEngine = create_async_engine(
    settings.async_database_url,
    **_engine_options(settings.async_database_url),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class TimestampMixin:
    """``created_at`` / ``updated_at`` maintained by the database clock."""

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )


class UUIDPrimaryKeyMixin:
    """UUID primary key generated client-side, so ids are known before flush."""

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """Create every table registered on ``Base.metadata`` (no-op if present)."""
    import app.models  # noqa: F401  (registers all tables)

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped session: committed on success, rolled back on error.

    Usage::

        @router.get("/videos")
        async def list_videos(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
