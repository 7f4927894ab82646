from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from libs.common.config import Settings, get_settings


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite only enforces FOREIGN KEY / ON DELETE rules when asked per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(settings: Settings, **overrides) -> AsyncEngine:
    """Create the async engine for ``settings.DATABASE_URL``.

    Pool sizing only applies to server databases; SQLite picks its own pool.
    """
    options = {
        "echo": settings.ENVIRONMENT == "local",
        "future": True,
    }
    if not settings.is_sqlite:
        options.update(
            pool_pre_ping=True,  # Test connections before using
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    options.update(overrides)

    async_engine = create_async_engine(settings.DATABASE_URL, **options)
    if settings.is_sqlite:
        enable_sqlite_foreign_keys(async_engine)
    return async_engine


settings = get_settings()

engine = build_engine(settings)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)
