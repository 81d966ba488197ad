# src/ideanest/services/auth.py
"""Registration, login and session management."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ideanest.core.errors import AuthenticationError, ConflictError
from ideanest.core.security import get_password_hash, verify_password
from ideanest.db.time import utcnow
from ideanest.models import User, UserRole
from ideanest.repositories.user_repo import UserRepository
from ideanest.services.tokens import RefreshOutcome, TokenPair, TokenService

logger = logging.getLogger(__name__)


class AuthService:
    """Credential checks layered over :class:`TokenService`."""

    def __init__(self, db: Session, tokens: TokenService) -> None:
        self.db = db
        self.tokens = tokens
        self.users = UserRepository(db)

    def register(self, email: str, password: str, name: str | None = None) -> tuple[User, TokenPair]:
        """Create an account and sign it in."""
        email = email.strip().lower()
        if self.users.find_including_deleted_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        user = User(
            email=email,
            password_hash=get_password_hash(password),
            name=name.strip() if name else None,
            role=UserRole.USER.value,
            last_login_at=utcnow(),
        )
        try:
            self.users.add(user)
            pair = self.tokens.login_session(self.db, user)
            self.db.commit()
        except IntegrityError as err:
            self.db.rollback()
            raise ConflictError("User with this email already exists") from err
        except Exception:
            self.db.rollback()
            raise
        logger.info("Registered user %s", user.id)
        return user, pair

    def login(self, email: str, password: str) -> tuple[User, TokenPair]:
        user = self.users.find_active_by_email(email.strip())
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        try:
            user.last_login_at = utcnow()
            pair = self.tokens.login_session(self.db, user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return user, pair

    def refresh(self, refresh_token: str) -> RefreshOutcome:
        return self.tokens.rotate_refresh(self.db, refresh_token)

    def logout(self, user: User, refresh_token: str | None) -> None:
        """End one session; without a token there is nothing to revoke."""
        if not refresh_token:
            return
        try:
            self.tokens.revoke_one(self.db, user.id, refresh_token)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def logout_all(self, user: User) -> int:
        try:
            revoked = self.tokens.revoke_all(self.db, user.id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info("Revoked %s sessions for user %s", revoked, user.id)
        return revoked
