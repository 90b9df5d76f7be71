from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base

from classclash.core.config import settings
from classclash.core.logging import get_logger

from typing import AsyncIterator


Base = declarative_base()


connection_string = str(settings.database.connection_string)

engine = create_async_engine(
    connection_string,
    echo=settings.database.echo,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    expire_on_commit=False,
)


logger = get_logger(__name__)


async def init_models() -> None:
    """Create tables that do not exist yet."""
    # Register mapped classes on Base.metadata
    from classclash.core.db import schemas  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Session rolled back due to error: {e}")
            raise
