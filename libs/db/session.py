from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from libs.common.logging import get_logger
from libs.db.base import Base

logger = get_logger(__name__)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an async database session and make sure it is closed afterwards.
    """
    from libs.db.config import AsyncSessionLocal

    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models(engine: AsyncEngine) -> None:
    """
    Create any missing tables (and the order summary view) for every model.

    One-time setup for local databases and tests; deployed databases are
    migrated with Alembic instead.
    """
    # Registers every table on Base.metadata
    import services.store_service.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema initialised (%d tables)", len(Base.metadata.tables))
