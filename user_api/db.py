"""Database engine, session factory, and connection utilities."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from .config import settings
from .logger import logger

# Base class for ORM models
Base = declarative_base()

# ==================== Engine Setup ====================


def create_engine_from_settings(db_url: str | None = None) -> AsyncEngine:
    """Create the async engine for the configured database.

    PostgreSQL gets the connection pool settings. SQLite only takes the
    connect timeout since aiosqlite manages its own connections.
    """
    url = db_url or settings.DB_URL

    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=False,
            connect_args={"timeout": settings.DB_CONNECT_TIMEOUT},
        )
        logger.info(f"Database engine configured: sqlite url={url}")
        return engine

    engine = create_async_engine(
        url,
        echo=False,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,  # Verify connections before use
        connect_args={"timeout": settings.DB_CONNECT_TIMEOUT},
    )
    logger.info(
        f"Database engine configured: pool_size={settings.DB_POOL_SIZE}, "
        f"max_overflow={settings.DB_MAX_OVERFLOW}, timeout={settings.DB_POOL_TIMEOUT}s"
    )
    return engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to engine; objects stay readable after commit."""
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables from ORM metadata.

    Used for SQLite development setups and tests. Production schemas are
    managed by Alembic migrations.
    """
    # Register models on the metadata before create_all
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created/verified")

# ==================== Health ====================


async def check_db_connection(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """Check if database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False

# ==================== Cleanup ====================


async def dispose_engine(engine: AsyncEngine) -> None:
    """Gracefully close all database connections.

    Called during application shutdown to properly cleanup connection pool.
    """
    logger.info("Disposing database engine and closing connections")
    try:
        await engine.dispose()
        logger.info("Database connections closed successfully")
    except Exception as e:
        logger.error(f"Error disposing database engine: {str(e)}", exc_info=True)
