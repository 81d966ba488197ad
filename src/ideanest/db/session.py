# src/ideanest/db/session.py
"""Database engine and session configuration.

Nothing here is created at import time: the application lifespan (or a
script) calls :func:`build_engine` and :func:`build_session_factory` and
keeps the results on ``app.state``.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ideanest.core.settings import Settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine for ``settings.database_url``."""
    url = settings.database_url
    kwargs: dict[str, Any] = {"pool_pre_ping": True, "echo": settings.sql_debug}
    if url.startswith("sqlite"):
        # Endpoints run in the threadpool, so connections cross threads.
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database.
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["pool_timeout"] = settings.db_pool_timeout

    engine = create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory bound to ``engine``."""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def ping(db: Session) -> bool:
    """Run a trivial query to prove the database is reachable."""
    return db.execute(text("SELECT 1")).scalar() == 1


def create_tables(engine: Engine) -> None:
    """Create all database tables."""
    import ideanest.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables(engine: Engine) -> None:
    """Drop all database tables."""
    import ideanest.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
