# stocksync/database.py

# type: ignore[misc]
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from stocksync.core.config import get_settings


def normalize_database_url(database_url: str) -> str:
    # Convert postgresql:// to postgresql+asyncpg:// for async support
    if database_url.startswith('postgresql://'):
        return database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    if database_url.startswith('sqlite://') and not database_url.startswith('sqlite+'):
        return database_url.replace('sqlite://', 'sqlite+aiosqlite://', 1)
    return database_url


def build_engine(database_url: str):
    database_url = normalize_database_url(database_url)
    options = {"echo": False, "future": True}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=10,
            max_overflow=20,
            pool_timeout=30,
            pool_recycle=1800,
        )
    return create_async_engine(database_url, **options)


settings = get_settings()

engine = build_engine(settings.DATABASE_URL)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

Base = declarative_base()
