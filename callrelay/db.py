"""Database engine, session factory and declarative base for the local store."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from callrelay.config import get_settings

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections are shared across worker threads."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


settings = get_settings()
engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Create all tables. Alembic owns migrations; this is for fresh local stores."""
    import callrelay.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)

