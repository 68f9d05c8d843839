"""
Engine, session factory and declarative base.
"""

import uuid
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from oidc_store.config import settings

Base = declarative_base()


def generate_uuid() -> str:
    """
    Random (v4) UUID string, used for string keys and concurrency tokens.
    """
    return str(uuid.uuid4())


@lru_cache()
def get_engine() -> AsyncEngine:
    """
    Process-wide engine, built on first use from settings.
    """
    options = {"echo": settings.db_echo}
    if not settings.sqlalchemy.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return create_async_engine(settings.sqlalchemy, **options)


@lru_cache()
def get_session_factory() -> async_sessionmaker:
    return async_sessionmaker(bind=get_engine(), class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Request-scoped session; rolls back on error.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine = None):
    """
    Create every mapped table that does not exist yet.
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Initialized OIDC store tables: {sorted(Base.metadata.tables)}")
