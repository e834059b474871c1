"""ERP Core — Async SQLAlchemy engine and session factory."""
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from erp_core.config import get_settings


def create_engine_from_url(url: str, *, echo: bool = False) -> AsyncEngine:
    """
    Build the async engine.

    PostgreSQL gets a sized connection pool. SQLite (tests, local dev) gets
    BEGIN IMMEDIATE on every transaction so writers are serialized the same way
    row locks serialize them on PostgreSQL.
    """
    settings = get_settings()
    if make_url(url).get_backend_name() == "sqlite":
        engine = create_async_engine(url, echo=echo, connect_args={"timeout": 30})

        @event.listens_for(engine.sync_engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        echo=echo,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


settings = get_settings()

engine = create_engine_from_url(settings.DATABASE_URL, echo=settings.DEBUG)
async_session_maker = create_session_maker(engine)
