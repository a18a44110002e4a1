# -*- coding: utf-8 -*-
"""Async database setup with SQLAlchemy."""
import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from .config import DATABASE_ECHO, DATABASE_URL
from .models_db import Base

logger = logging.getLogger(__name__)


def make_engine(url: str = DATABASE_URL) -> AsyncEngine:
    connect_args = {}
    if url.startswith("sqlite"):
        # writers queue on the file lock instead of failing immediately
        connect_args["timeout"] = 30
    return create_async_engine(url, echo=DATABASE_ECHO, connect_args=connect_args)


def make_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine()
async_session = make_sessionmaker(engine)


async def create_tables(bind: AsyncEngine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db():
    """Create tables on the application engine."""
    await create_tables(engine)
    logger.info("[Database] Tables ready on %s", engine.url.render_as_string(hide_password=True))


async def get_session():
    """Dependency for FastAPI routes."""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
