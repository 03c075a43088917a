"""
Database configuration and connection management.
"""

from sqlalchemy.orm import declarative_base
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from loguru import logger

from .config import settings

# Convert sync database URL to async for async operations
async_database_url = settings.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

engine_options = {"echo": settings.DEBUG}
if not async_database_url.startswith("sqlite"):
    engine_options.update(pool_pre_ping=True, pool_recycle=300)

# Create async engine
engine = create_async_engine(async_database_url, **engine_options)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Create declarative base
Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    Get database session.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            # Business errors raised by the API are not database errors
            from fastapi import HTTPException
            from secrets_manager.utils.exceptions import SecretsManagerException
            if not isinstance(e, (HTTPException, SecretsManagerException)):
                logger.error("Database session error: {}", str(e))
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables():
    """Create database tables."""
    try:
        async with engine.begin() as conn:
            # Import all models to ensure they're registered
            from secrets_manager import models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        raise

