# storesync/database.py

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base

from storesync.core.config import get_settings


def normalize_database_url(database_url: str) -> str:
    """Convert postgres URLs to their asyncpg form."""
    if database_url.startswith('postgres://'):
        return database_url.replace('postgres://', 'postgresql+asyncpg://', 1)
    if database_url.startswith('postgresql://'):
        return database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    return database_url


def build_engine(database_url: str, **kwargs):
    database_url = normalize_database_url(database_url)
    if not database_url.startswith('sqlite'):
        kwargs.setdefault('pool_size', 10)
        kwargs.setdefault('max_overflow', 20)
        kwargs.setdefault('pool_timeout', 30)
        kwargs.setdefault('pool_recycle', 1800)
    return create_async_engine(database_url, echo=False, future=True, **kwargs)


settings = get_settings()

engine = build_engine(settings.DATABASE_URL)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

Base = declarative_base()



async def create_tables(bind=None):
    """Create all tables known to the models package."""
    from storesync import models  # noqa: F401  (registers tables on Base.metadata)

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
