from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from hisaab.core.config import Settings

Base = declarative_base()

def build_engine(settings: Settings) -> AsyncEngine:
    options = {"echo": settings.DB_ECHO}
    if settings.DB_ISOLATION_LEVEL:
        options["isolation_level"] = settings.DB_ISOLATION_LEVEL
    return create_async_engine(settings.DATABASE_URL, **options)

def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)
