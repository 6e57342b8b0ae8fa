"""
Database engine and session factory.
Uses SQLAlchemy; any URL it supports works (Postgres in production, SQLite locally).
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from hrchat.utils.logger import get_logger

logger = get_logger("data.database")

# Base class for all our database models
Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    In-memory SQLite gets a StaticPool so every session sees the same database
    (tests and throwaway runs); everything else uses pre-ping to survive
    dropped connections.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)
    else:
        engine = create_engine(database_url, pool_pre_ping=True)
    logger.info(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    """Session factory; objects stay readable after commit."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create tables if they don't exist. In production, use migrations instead."""
    # Import models so they are registered on Base.metadata
    from hrchat.data import models  # noqa: F401
    Base.metadata.create_all(bind=engine)
