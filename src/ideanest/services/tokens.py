"""Access and refresh token service.

Access tokens are short-lived bearer JWTs. Refresh tokens are longer-lived
JWTs signed with a separate secret and additionally stored (as SHA-256
digests) per user; a refresh token is honoured only while its digest is
stored, so rotation and logout revoke it for good.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Literal

from jose import JWTError, jwt
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ideanest.core.errors import AuthenticationError
from ideanest.core.security import sha256_hex
from ideanest.core.settings import Settings
from ideanest.db.time import utcnow
from ideanest.models import RefreshToken, User
from ideanest.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

TokenType = Literal["access", "refresh"]


class InvalidTokenError(AuthenticationError):
    """Token failed signature, expiry, issuer, audience or type checks."""

    default_message = "Invalid or expired token"


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims embedded in both token kinds."""

    user_id: int
    email: str
    role: str

    @classmethod
    def for_user(cls, user: User) -> TokenClaims:
        return cls(user_id=user.id, email=user.email, role=user.role)


@dataclass(frozen=True)
class TokenPayload:
    """Verified token contents."""

    user_id: int
    email: str
    role: str
    token_type: TokenType
    jti: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_in: int
    refresh_expires_at: datetime


class RefreshStatus(str, Enum):
    ROTATED = "rotated"
    INVALID = "invalid"
    REVOKED = "revoked"
    USER_NOT_FOUND = "user_not_found"


@dataclass(frozen=True)
class RefreshOutcome:
    """Result of a refresh attempt; ``tokens`` and ``user`` are set only on success."""

    status: RefreshStatus
    tokens: TokenPair | None = None
    user: User | None = None

    @property
    def ok(self) -> bool:
        return self.status is RefreshStatus.ROTATED


class TokenService:
    """Issue, verify, rotate and revoke tokens."""

    def __init__(self, settings: Settings) -> None:
        self._access_secret = settings.jwt_access_secret
        self._refresh_secret = settings.jwt_refresh_secret
        self._algorithm = settings.jwt_algorithm
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self.access_ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self.refresh_ttl = timedelta(days=settings.refresh_token_expire_days)
        self.max_sessions = settings.max_refresh_sessions

    # --- Signing --------------------------------------------------------------
    def _encode(self, claims: TokenClaims, token_type: TokenType, now: datetime) -> str:
        ttl = self.access_ttl if token_type == "access" else self.refresh_ttl
        secret = self._access_secret if token_type == "access" else self._refresh_secret
        payload: dict[str, Any] = {
            "sub": str(claims.user_id),
            "email": claims.email,
            "role": claims.role,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, token_type: TokenType) -> TokenPayload:
        secret = self._access_secret if token_type == "access" else self._refresh_secret
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
            )
        except JWTError as err:
            raise InvalidTokenError() from err

        if payload.get("type") != token_type:
            raise InvalidTokenError("Invalid token type")
        try:
            return TokenPayload(
                user_id=int(payload["sub"]),
                email=payload["email"],
                role=payload["role"],
                token_type=token_type,
                jti=payload["jti"],
                expires_at=datetime.fromtimestamp(payload["exp"], tz=utcnow().tzinfo),
            )
        except (KeyError, TypeError, ValueError) as err:
            raise InvalidTokenError("Malformed token claims") from err

    def issue(self, claims: TokenClaims, *, now: datetime | None = None) -> TokenPair:
        """Sign a fresh access/refresh pair for ``claims``."""
        now = now or utcnow()
        return TokenPair(
            access_token=self._encode(claims, "access", now),
            refresh_token=self._encode(claims, "refresh", now),
            access_expires_in=int(self.access_ttl.total_seconds()),
            refresh_expires_at=now + self.refresh_ttl,
        )

    def verify_access(self, token: str) -> TokenPayload:
        """Return the payload of a valid access token or raise :class:`InvalidTokenError`."""
        return self._decode(token, "access")

    def verify_refresh(self, token: str) -> TokenPayload:
        return self._decode(token, "refresh")

    # --- Stored sessions ------------------------------------------------------
    def login_session(self, db: Session, user: User) -> TokenPair:
        """Issue a pair, remember its refresh token and trim old sessions.

        The caller commits.
        """
        pair = self.issue(TokenClaims.for_user(user))
        now = utcnow()
        db.add(
            RefreshToken(
                user_id=user.id,
                token_hash=sha256_hex(pair.refresh_token),
                issued_at=now,
                created_at=now,
                expires_at=pair.refresh_expires_at,
            )
        )
        db.flush()
        self._trim_sessions(db, user.id)
        return pair

    def _trim_sessions(self, db: Session, user_id: int) -> None:
        keep = select(RefreshToken.id).where(RefreshToken.user_id == user_id).order_by(
            RefreshToken.issued_at.desc(), RefreshToken.id.desc()
        ).limit(self.max_sessions)
        kept_ids = list(db.scalars(keep))
        result = db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.id.not_in(kept_ids))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.debug("Trimmed %s stale refresh sessions for user %s", result.rowcount, user_id)

    def rotate_refresh(self, db: Session, token: str) -> RefreshOutcome:
        """Exchange a stored refresh token for a new pair.

        The stored row is overwritten with the successor, so the presented
        token can never be used again. Commits on success.
        """
        try:
            payload = self.verify_refresh(token)
        except InvalidTokenError:
            return RefreshOutcome(RefreshStatus.INVALID)

        user = UserRepository(db).find_active(payload.user_id)
        if user is None or not user.is_active:
            return RefreshOutcome(RefreshStatus.USER_NOT_FOUND)

        presented_hash = sha256_hex(token)
        stored_id = db.scalar(
            select(RefreshToken.id).where(
                RefreshToken.user_id == user.id,
                RefreshToken.token_hash == presented_hash,
            )
        )
        if stored_id is None:
            logger.info("Refresh token for user %s is not in the stored list", user.id)
            return RefreshOutcome(RefreshStatus.REVOKED)

        pair = self.issue(TokenClaims.for_user(user))
        # Only the transaction that still sees the presented hash may rotate it.
        result = db.execute(
            update(RefreshToken)
            .where(RefreshToken.id == stored_id, RefreshToken.token_hash == presented_hash)
            .values(
                token_hash=sha256_hex(pair.refresh_token),
                issued_at=utcnow(),
                expires_at=pair.refresh_expires_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            logger.info("Refresh token for user %s was rotated concurrently", user.id)
            return RefreshOutcome(RefreshStatus.REVOKED)
        db.commit()
        return RefreshOutcome(RefreshStatus.ROTATED, tokens=pair, user=user)

    def revoke_one(self, db: Session, user_id: int, token: str) -> bool:
        """Forget one stored refresh token. The caller commits."""
        result = db.execute(
            delete(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.token_hash == sha256_hex(token),
            )
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def revoke_all(self, db: Session, user_id: int) -> int:
        """Forget every stored refresh token of a user. The caller commits."""
        result = db.execute(
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def session_count(self, db: Session, user_id: int) -> int:
        return len(list(db.scalars(select(RefreshToken.id).where(RefreshToken.user_id == user_id))))
