"""
Relational store engine and sessions.

The canonical tables live here. DATABASE_URL may use the sync driver names
(``sqlite:///``, ``postgresql://`` or Heroku-style ``postgres://``); they are
rewritten to aiosqlite / asyncpg.
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from donation_sync.config import get_settings

settings = get_settings()

Base = declarative_base()


def async_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def create_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    url = async_database_url(url)
    kwargs = {"echo": echo}

    if url.startswith("sqlite"):
        if ":memory:" in url:
            # One shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_size"] = 20
        kwargs["max_overflow"] = 10
        kwargs["pool_pre_ping"] = True

    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine, drop_existing: bool = False) -> None:
    """Create food_items / requests / transactions (optionally dropping them first)"""
    import donation_sync.models  # noqa: F401 - registers the tables on Base

    async with engine.begin() as conn:
        if drop_existing:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


engine = create_engine_from_url(settings.DATABASE_URL, echo=settings.DEBUG)
AsyncSessionLocal = create_session_factory(engine)
