"""
Database session management.

Provides the async SQLAlchemy engine, session factory, FastAPI session dependency
and schema/seed initialization.
"""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from displayables_auth.config.settings import get_settings
from displayables_auth.domain.models import ProviderName
from displayables_auth.infrastructure.persistence.models import Base, IdentityProvider

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """Get the process-wide async engine, creating it on first use."""
    global _engine, _session_factory

    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.sql_echo,
            pool_pre_ping=True,
        )
        _session_factory = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(f"Database engine created for {_engine.url.render_as_string(hide_password=True)}")

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    get_engine()
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def seed_providers(session: AsyncSession) -> None:
    """Insert any missing provider reference rows."""
    result = await session.execute(select(IdentityProvider.name))
    existing = set(result.scalars().all())

    missing = [provider.value for provider in ProviderName if provider.value not in existing]
    for name in missing:
        session.add(IdentityProvider(name=name))

    if missing:
        await session.commit()
        logger.info(f"Seeded providers: {', '.join(missing)}")


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create tables and seed the provider reference data.

    Safe to call repeatedly.
    """
    engine = engine or get_engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_providers(session)


async def close_db() -> None:
    """
    Close database engine and clean up connections.

    Should be called on application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
