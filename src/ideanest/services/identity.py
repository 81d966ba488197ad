"""Actor identity resolution.

Every like and every anonymous idea is attributed to exactly one identity:
the authenticated user, or a fingerprint derived from request metadata for
visitors without a valid access token.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from fastapi import Request

from ideanest.core.errors import ValidationFailedError
from ideanest.core.security import sha256_hex

logger = logging.getLogger(__name__)

UNKNOWN_IP = "unknown-ip"
UNKNOWN_UA = "unknown-ua"
UNKNOWN_LANG = "unknown-lang"
UNKNOWN_ENC = "unknown-enc"


class IdentityUnavailableError(ValidationFailedError):
    """No usable identity could be derived for an anonymous request."""

    default_message = "Unable to identify the client for an anonymous request"


@dataclass(frozen=True)
class ClientInfo:
    """Request metadata that feeds the anonymous fingerprint."""

    ip: str | None = None
    user_agent: str | None = None
    accept_language: str | None = None
    accept_encoding: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> ClientInfo:
        headers = request.headers
        return cls(
            ip=request.client.host if request.client else None,
            user_agent=headers.get("user-agent"),
            accept_language=headers.get("accept-language"),
            accept_encoding=headers.get("accept-encoding"),
        )


@dataclass(frozen=True)
class ActorIdentity:
    """Either an authenticated user or an anonymous fingerprint, never both."""

    kind: Literal["user", "anonymous"]
    user_id: int | None = None
    fingerprint: str | None = None

    def __post_init__(self) -> None:
        if self.kind == "user" and (self.user_id is None or self.fingerprint is not None):
            raise ValueError("user identity requires user_id only")
        if self.kind == "anonymous" and (self.fingerprint is None or self.user_id is not None):
            raise ValueError("anonymous identity requires fingerprint only")

    @classmethod
    def for_user(cls, user_id: int) -> ActorIdentity:
        return cls(kind="user", user_id=user_id)

    @classmethod
    def anonymous(cls, fingerprint: str) -> ActorIdentity:
        return cls(kind="anonymous", fingerprint=fingerprint)

    @property
    def is_user(self) -> bool:
        return self.kind == "user"


def compute_fingerprint(client: ClientInfo) -> str:
    """Return the hex SHA-256 of ``ip|user-agent|language|encoding``.

    Missing components are replaced by fixed placeholders so the result is
    deterministic for identical inputs.
    """
    parts = [
        client.ip or UNKNOWN_IP,
        client.user_agent or UNKNOWN_UA,
        client.accept_language or UNKNOWN_LANG,
        client.accept_encoding or UNKNOWN_ENC,
    ]
    return sha256_hex("|".join(parts))


def resolve_identity(user_id: int | None, client: ClientInfo) -> ActorIdentity:
    """Pick the identity for a request.

    A verified user always wins. Anonymous callers need at least a client
    address; without one the request is rejected instead of being lumped
    together with every other address-less caller.
    """
    if user_id is not None:
        return ActorIdentity.for_user(user_id)
    if not client.ip:
        logger.info("Rejecting anonymous request without a client address")
        raise IdentityUnavailableError()
    return ActorIdentity.anonymous(compute_fingerprint(client))
