"""
Database engine and session management
"""

from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from tablebook.config import settings


class Base(DeclarativeBase):
    """Declarative base for all models"""


engine = create_async_engine(
    settings.database_url,
    echo=settings.api_debug,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session per request"""
    async with SessionLocal() as session:
        yield session


async def ping_database() -> None:
    """Round-trip a trivial query; raises if the database is unreachable"""
    async with SessionLocal() as session:
        await session.execute(text("SELECT 1"))


async def dispose_engine() -> None:
    """Close all pooled connections on shutdown"""
    await engine.dispose()
