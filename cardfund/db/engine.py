"""CardFund Billing - Async MySQL engine and billing sessions.

Billing services commit their own units of work (a fee debit, its ledger
entry, a status transition), so sessions keep loaded rows usable after a
commit (``expire_on_commit=False``).
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from cardfund.core.config import get_settings

settings = get_settings()

engine = create_async_engine(
    str(settings.database_url),
    echo=settings.debug,
    pool_pre_ping=True,
    pool_recycle=3600,
)

async_session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Create the billing tables that do not exist yet.

    Migrations are managed by Alembic; this only covers a fresh database.
    """
    import cardfund.models  # noqa: F401  register tables on SQLModel.metadata

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db() -> None:
    """Dispose of pooled connections (app shutdown, end of a Celery task)."""
    await engine.dispose()


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session for background jobs, committed on success.

    Usage:
        async with get_session() as db:
            report = await BalanceReconciliationService(db).reconcile_users()
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with get_session() as session:
        yield session
