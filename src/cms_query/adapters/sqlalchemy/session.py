"""SQLAlchemy adapter – SqlAlchemySessionFactory."""
from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


class SqlAlchemySessionFactory:
    """Creates async SQLAlchemy sessions from an engine URL.

    Sessions are handed to :class:`SqlAlchemySearchStore`; the factory owns
    the engine and its pool, the search engine never does::

        sessions = SqlAlchemySessionFactory("postgresql+asyncpg://.../cms")
        async with sessions.scoped() as session:
            store = SqlAlchemySearchStore(session, User)
            result = await service.search(store, request, config)
    """

    def __init__(self, database_url: str, **engine_kwargs: Any) -> None:
        self._engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(self._engine, class_=AsyncSession, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def __call__(self) -> AsyncSession:
        return self._session_factory()

    @contextlib.asynccontextmanager
    async def scoped(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def create_all(self, metadata: Any) -> None:
        """Create every table in *metadata* (tests and local development)."""
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()


__all__ = ["SqlAlchemySessionFactory"]
