"""Database connection, session management and transaction scopes."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from .config import settings

# SQLite needs a single shared connection (StaticPool) when used from async code
if "sqlite" in settings.DATABASE_URL:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=NullPool,
    )

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@asynccontextmanager
async def transactional(
    db: AsyncSession, isolation_level: str | None = None
) -> AsyncIterator[AsyncSession]:
    """
    Run a block of statements as one all-or-nothing unit.

    Opens a new transaction on the session, or a SAVEPOINT when the session is
    already inside one. Any exception leaving the block rolls the unit back and
    propagates; a clean exit commits (or releases the savepoint).

    ``isolation_level`` applies only when a new outer transaction is started,
    since the level of a running transaction cannot be changed.

    Usage:
        async with transactional(session, isolation_level="SERIALIZABLE"):
            await repo.insert_rows(rows)
            await repo.delete_by_tag(tag_id)
    """
    if db.in_transaction():
        async with db.begin_nested():
            yield db
        return

    async with db.begin():
        # SQLite transactions are serializable already
        if isolation_level and db.get_bind().dialect.name != "sqlite":
            await db.connection(execution_options={"isolation_level": isolation_level})
        yield db


async def init_db():
    """Initialize database (create all tables)."""
    from ..models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

