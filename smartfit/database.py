import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from smartfit import config

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    options = {"echo": config.SQL_ECHO}
    if url.startswith("sqlite"):
        # aiosqlite connections are bound to the loop that opened them
        options["poolclass"] = NullPool
    return options


engine = create_async_engine(config.DATABASE_URL, **_engine_options(config.DATABASE_URL))
async_session = async_sessionmaker(engine, expire_on_commit=False)
Base = declarative_base()


async def get_db():
    async with async_session() as session:
        yield session


async def initialize_database(reset: bool = False):
    # models must be registered on Base.metadata before create_all
    from smartfit import models  # noqa: F401

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            logger.info("Dropped all tables")
        await conn.run_sync(Base.metadata.create_all)


async def close_database():
    await engine.dispose()
