"""Test configuration and fixtures for BerryAdmin."""

import os
from typing import AsyncGenerator

import pytest
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tests.models import Base

# BERRYADMIN_TEST_DATABASE_URL may come from a local .env file
load_dotenv()

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def engine():
    """Fresh schema per test; in-memory SQLite unless an external URL is configured."""
    url = os.getenv('BERRYADMIN_TEST_DATABASE_URL') or SQLITE_MEMORY_URL
    external = url != SQLITE_MEMORY_URL
    eng = create_async_engine(url, echo=False, future=True)
    async with eng.begin() as conn:
        if external:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    if external:
        async with eng.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest.fixture(scope="function")
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """One session per test, objects stay usable after commit."""
    make_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with make_session() as session:
        yield session


# Shared data fixtures
from tests.fixtures import (
    sample_users,
    sample_posts,
    sample_comments,
    populated_db,
)
