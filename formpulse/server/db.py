"""SQLAlchemy database setup for the reference server."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def get_engine(db_url: str = "sqlite://") -> Engine:
    """Create a SQLAlchemy engine.

    Args:
        db_url: Database URL.  The default ``"sqlite://"`` is an in-memory
                database that lives as long as the engine.
    """
    # In-memory SQLite needs StaticPool so all connections share the
    # same database (otherwise each connection gets its own empty DB).
    if db_url == "sqlite://":
        return create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if db_url.startswith("sqlite"):
        return create_engine(db_url, connect_args={"check_same_thread": False})
    return create_engine(db_url)


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a sessionmaker bound to the given engine."""
    return sessionmaker(bind=engine)


def init_db(engine: Engine) -> None:
    """Create all tables. Safe to call repeatedly (CREATE IF NOT EXISTS)."""
    from formpulse.server import models  # noqa: F401  (registers all tables)

    Base.metadata.create_all(bind=engine)
