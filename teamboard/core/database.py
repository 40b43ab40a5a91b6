"""
Database configuration and session management
"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy import MetaData, text

from teamboard.config import settings
from teamboard.core.logging import get_logger

logger = get_logger(__name__)


def _engine_options(database_url: str) -> dict:
    """Pool options for the configured backend; SQLite manages its own pool"""
    if database_url.startswith("sqlite"):
        return {"echo": False}
    return {
        "echo": False,  # Disable SQL logging for performance
        "pool_pre_ping": True,
        "pool_recycle": 3600,  # 1 hour
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_timeout": settings.db_pool_timeout,
    }


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Session factory
async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base(
    metadata=MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s"
        }
    )
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """
    Initialize database tables
    """
    # Import all models to ensure they are registered with SQLAlchemy
    from teamboard.models import user, team, board, column, card  # noqa: F401

    logger.info("Initializing database...")
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    logger.info("Database tables initialized")


async def close_db():
    """
    Close database connections
    """
    await engine.dispose()
