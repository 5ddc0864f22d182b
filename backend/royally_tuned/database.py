"""Async SQLAlchemy engine for Supabase Postgres, session factory, and declarative base."""

import uuid
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import NullPool

from royally_tuned.config import Settings, settings


def _unique_statement_name() -> str:
    return f"__asyncpg_{uuid.uuid4()}__"


def engine_options(config: Settings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine``.

    Supabase's transaction pooler hands each transaction to whichever
    server connection is free, so asyncpg must not reuse prepared statements
    and pooling is left to the pooler. Direct connections keep a local pool
    sized from settings.
    """
    options: dict[str, Any] = {"echo": config.debug, "pool_pre_ping": True}
    if config.database_transaction_pooler:
        options["poolclass"] = NullPool
        options["connect_args"] = {
            "statement_cache_size": 0,
            "prepared_statement_cache_size": 0,
            "prepared_statement_name_func": _unique_statement_name,
        }
    else:
        options["pool_size"] = config.database_pool_size
        options["max_overflow"] = config.database_max_overflow
    return options


engine = create_async_engine(settings.async_database_url, **engine_options(settings))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """Mixin that adds created_at and updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )


class UUIDPrimaryKeyMixin:
    """Mixin that adds a UUID primary key column."""

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield an async database session for FastAPI dependency injection.

    Usage::

        @router.post("/api/artists/create")
        async def create(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
