"""Database layer utilities for the SQLAlchemy-backed record stores."""
from __future__ import annotations

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings

# Remote record store tables (profiles, relationships, shared activities)
Base = declarative_base()

# On-device cache tables, kept in a separate SQLite file
LocalBase = declarative_base()


def make_engine(url: str) -> Engine:
    """Build an engine; in-memory SQLite shares one connection across worker threads."""

    if url in {"sqlite://", "sqlite+pysqlite://", "sqlite:///:memory:", "sqlite+pysqlite:///:memory:"}:
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    return create_engine(url, pool_pre_ping=True, future=True)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
        expire_on_commit=False,
    )


# Load settings (DATABASE_URL and others come from env/.env)
settings = get_settings()

engine: Engine = make_engine(settings.database_url)

SessionLocal = make_session_factory(engine)


def get_engine() -> Engine:
    """Return the configured SQLAlchemy engine."""
    return engine


def get_session() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session and close it afterwards."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_session() -> Session:
    """Return a new SQLAlchemy session for background tasks or scripts."""
    return SessionLocal()


def init_db(bind: Engine | None = None) -> None:
    """Initialise the remote store schema by creating tables when missing."""
    # Import models to ensure they are registered on the metadata before create_all runs.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


__all__ = [
    "Base",
    "LocalBase",
    "SessionLocal",
    "make_engine",
    "make_session_factory",
    "get_engine",
    "get_session",
    "create_session",
    "init_db",
]
