from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from tradelog.core.config import settings

Base = declarative_base()

engine_kwargs = {
    "echo": settings.DB_ECHO,
    "future": True,
}

# SQLite needs no pool tuning; server databases want pre-ping and recycling
if not settings.DATABASE_URL.startswith("sqlite"):
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    })

engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)

SessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Per-request database session dependency"""
    async with SessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create missing tables."""
    # registers the trades table on Base.metadata
    from tradelog.models import trade  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
