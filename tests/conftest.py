from typing import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from libs.common.config import get_settings
from libs.common.logging import configure_logging
from libs.db.base import Base
from libs.db.config import build_engine

# Import all models so metadata includes every table and the summary view
import services.store_service.models  # noqa: F401

settings = get_settings()
configure_logging()


@pytest_asyncio.fixture
async def test_engine():
    """
    Create an engine with every table (and the order summary view) in place.

    With the default in-memory SQLite URL each test gets its own database.
    """
    engine = build_engine(settings)

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop tables after each test
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session configured like the application's ``AsyncSessionLocal``.

    Store operations commit their own transactions, so the session is bound
    to the engine rather than wrapped in an outer transaction.
    """
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
