# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_ENABLED", "false")

from ideanest.core.security import get_password_hash
from ideanest.core.settings import Settings
from ideanest.db.session import build_engine, build_session_factory, create_tables, drop_tables, get_db
from ideanest.main import create_app
from ideanest.models import Idea, User, UserRole
from ideanest.models.idea import AUTHOR_TYPE_ANONYMOUS, AUTHOR_TYPE_USER
from ideanest.services.cache import CacheService
from ideanest.services.tokens import TokenClaims, TokenService

TEST_PASSWORD = "Sup3r$ecret"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        cache_enabled=False,
        auto_create_tables=True,
        cookie_secure=False,
        jwt_access_secret="test-access-secret",
        jwt_refresh_secret="test-refresh-secret",
    )


@pytest.fixture()
def engine(settings: Settings) -> Generator[Engine, None, None]:
    engine = build_engine(settings)
    create_tables(engine)
    try:
        yield engine
    finally:
        drop_tables(engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def app(settings: Settings, session_factory: sessionmaker[Session]) -> Iterator[FastAPI]:
    application = create_app(settings)

    def _get_session_override() -> Generator[Session, None, None]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = _get_session_override
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def token_service(settings: Settings) -> TokenService:
    return TokenService(settings)


@pytest.fixture()
def cache() -> CacheService:
    """A cache with no backend; every read falls through to the loader."""
    return CacheService(None)


@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hash once; bcrypt is deliberately slow."""
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture()
def make_user(db_session: Session, password_hash: str) -> Callable[..., User]:
    """Return a factory that persists users."""
    counter = iter(range(1, 10_000))

    def _make(
        *,
        name: str | None = None,
        email: str | None = None,
        role: UserRole = UserRole.USER,
        is_active: bool = True,
    ) -> User:
        index = next(counter)
        user = User(
            email=email or f"user{index}@example.com",
            password_hash=password_hash,
            name=name or f"User {index}",
            role=role.value,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def user(make_user: Callable[..., User]) -> User:
    return make_user(name="Alice Example", email="alice@example.com")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    return make_user(name="Bob Example", email="bob@example.com")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user(name="Ada Admin", email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture()
def moderator(make_user: Callable[..., User]) -> User:
    return make_user(name="Mo Moderator", email="mod@example.com", role=UserRole.MODERATOR)


@pytest.fixture()
def headers_for(token_service: TokenService) -> Callable[[User], dict[str, str]]:
    """Return a helper that builds bearer headers for a user."""

    def _headers(account: User) -> dict[str, str]:
        pair = token_service.issue(TokenClaims.for_user(account))
        return {"Authorization": f"Bearer {pair.access_token}"}

    return _headers


@pytest.fixture()
def auth_headers(user: User, headers_for: Callable[[User], dict[str, str]]) -> dict[str, str]:
    return headers_for(user)


@pytest.fixture()
def admin_headers(admin: User, headers_for: Callable[[User], dict[str, str]]) -> dict[str, str]:
    return headers_for(admin)


@pytest.fixture()
def moderator_headers(moderator: User, headers_for: Callable[[User], dict[str, str]]) -> dict[str, str]:
    return headers_for(moderator)


@pytest.fixture()
def make_idea(db_session: Session) -> Callable[..., Idea]:
    """Return a factory that persists ideas by a user or an anonymous fingerprint."""
    counter = iter(range(1, 10_000))

    def _make(
        *,
        author: User | None = None,
        fingerprint: str | None = None,
        title: str | None = None,
        tags: list[str] | None = None,
        is_public: bool = True,
        like_count: int = 0,
        created_at: datetime | None = None,
    ) -> Idea:
        index = next(counter)
        idea = Idea(
            title=title or f"Idea number {index}",
            content="A reasonably detailed description of the idea.",
            author_id=author.id if author is not None else None,
            anonymous_fingerprint=None if author is not None else (fingerprint or f"{index:064x}"),
            author_type=AUTHOR_TYPE_USER if author is not None else AUTHOR_TYPE_ANONYMOUS,
            is_public=is_public,
            like_count=like_count,
        )
        if created_at is not None:
            idea.created_at = created_at
            idea.updated_at = created_at
        idea.set_tags(tags or [])
        db_session.add(idea)
        db_session.commit()
        return idea

    return _make
