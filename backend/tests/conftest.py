"""Shared test fixtures and configuration."""
import os

# Modules that read settings lazily must find a database URL
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from forum_core.config import Settings
from forum_core.database import build_sessionmaker, enable_sqlite_savepoints
from forum_core.models import Base


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def app_settings() -> Settings:
    return Settings(database_url="sqlite+aiosqlite://")


@pytest.fixture
async def engine(anyio_backend):
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with build_sessionmaker(engine)() as session:
        yield session
