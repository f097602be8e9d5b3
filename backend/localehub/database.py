import asyncio
import logging
import os

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, StaticPool

from localehub.config import get_settings
from localehub.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)
settings = get_settings()

# Startup may race the database container; roughly a minute of backoff
INIT_DB_RETRY = RetryPolicy(max_retries=4, base_delay=2.0, max_delay=30.0)


def _sqlite_engine(url: str) -> AsyncEngine:
    is_memory = ":memory:" in url
    connect_args = {"check_same_thread": False}
    if is_memory:
        # A single shared connection, otherwise every session sees its own empty database
        poolclass = StaticPool
    else:
        database = make_url(url).database
        if database:
            os.makedirs(os.path.dirname(os.path.abspath(database)), exist_ok=True)
        # One connection per session; they are cheap and never outlive an event loop
        poolclass = NullPool
        connect_args["timeout"] = 30

    logger.info(f"Using SQLite database {url}")
    engine = create_async_engine(url, echo=settings.app_debug, poolclass=poolclass, connect_args=connect_args)

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        # Translation rows cascade with their key; SQLite needs this per connection
        cursor.execute("PRAGMA foreign_keys=ON")
        if not is_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=30000")
        cursor.close()

    return engine


def _postgres_engine(url: str) -> AsyncEngine:
    logger.info(f"Connecting to PostgreSQL at {settings.postgres_host}:{settings.postgres_port}")
    return create_async_engine(
        url,
        echo=settings.app_debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        pool_recycle=settings.db_pool_recycle,
    )


def create_engine_for_database() -> AsyncEngine:
    """Create the async engine for the configured backend."""
    if settings.use_sqlite:
        return _sqlite_engine(settings.database_url)
    return _postgres_engine(settings.database_url)


_engine = None
_session_maker = None


def get_engine() -> AsyncEngine:
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        _engine = create_engine_for_database()
    return _engine


def _get_session_maker():
    global _session_maker
    if _session_maker is None:
        # Repositories hand ORM rows back after committing
        _session_maker = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    return _session_maker


def AsyncSessionLocal() -> AsyncSession:
    """Open a new session: ``async with AsyncSessionLocal() as session: ...``"""
    return _get_session_maker()()


Base = declarative_base()


async def get_db():
    """Dependency to get database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def check_connection() -> None:
    """Run a trivial query; raises when the database is unreachable."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init_db():
    """Create missing tables, retrying while the database comes up.

    Production PostgreSQL deployments are expected to run the Alembic
    migrations; this keeps SQLite development and tests self-contained.
    """
    import localehub.models  # noqa: F401

    retries_done = 0
    while True:
        try:
            async with get_engine().begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables initialized")
            return
        except Exception as e:
            if retries_done >= INIT_DB_RETRY.max_retries:
                logger.error(f"Database initialization failed after {retries_done + 1} attempts: {e}")
                raise
            retries_done += 1
            delay = INIT_DB_RETRY.delay_for(retries_done)
            logger.warning(
                f"Database connection attempt {retries_done}/{INIT_DB_RETRY.max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.0f}s..."
            )
            await asyncio.sleep(delay)
