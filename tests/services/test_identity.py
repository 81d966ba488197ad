"""Tests for actor identity resolution and fingerprinting."""

from __future__ import annotations

import hashlib

import pytest

from ideanest.services.identity import (
    ActorIdentity,
    ClientInfo,
    IdentityUnavailableError,
    compute_fingerprint,
    resolve_identity,
)


def test_fingerprint_is_deterministic() -> None:
    """Identical request metadata yields the same fingerprint."""
    client = ClientInfo(ip="203.0.113.7", user_agent="Mozilla/5.0", accept_language="en", accept_encoding="gzip")
    assert compute_fingerprint(client) == compute_fingerprint(ClientInfo(**client.__dict__))


def test_fingerprint_uses_placeholders_for_missing_parts() -> None:
    """Missing headers fall back to fixed placeholder values."""
    expected = hashlib.sha256(b"203.0.113.7|unknown-ua|unknown-lang|unknown-enc").hexdigest()
    assert compute_fingerprint(ClientInfo(ip="203.0.113.7")) == expected


def test_fingerprint_changes_with_user_agent() -> None:
    first = compute_fingerprint(ClientInfo(ip="203.0.113.7", user_agent="agent-a"))
    second = compute_fingerprint(ClientInfo(ip="203.0.113.7", user_agent="agent-b"))
    assert first != second
    assert len(first) == 64


def test_authenticated_user_wins_over_fingerprint() -> None:
    identity = resolve_identity(42, ClientInfo(ip="203.0.113.7"))
    assert identity.is_user
    assert identity.user_id == 42
    assert identity.fingerprint is None


def test_anonymous_identity_uses_fingerprint() -> None:
    client = ClientInfo(ip="203.0.113.7", user_agent="agent")
    identity = resolve_identity(None, client)
    assert not identity.is_user
    assert identity.user_id is None
    assert identity.fingerprint == compute_fingerprint(client)


def test_anonymous_without_address_is_rejected() -> None:
    """Address-less anonymous callers are not lumped into one shared identity."""
    with pytest.raises(IdentityUnavailableError) as excinfo:
        resolve_identity(None, ClientInfo(user_agent="agent"))
    assert excinfo.value.status_code == 400


@pytest.mark.parametrize(
    "kwargs",
    [
        {"kind": "user"},
        {"kind": "user", "user_id": 1, "fingerprint": "abc"},
        {"kind": "anonymous"},
        {"kind": "anonymous", "user_id": 1, "fingerprint": "abc"},
    ],
)
def test_identity_requires_exactly_one_component(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        ActorIdentity(**kwargs)


@pytest.mark.parametrize("field", ["ip", "user_agent", "accept_language", "accept_encoding"])
def test_fingerprint_is_sensitive_to_every_component(field: str) -> None:
    base = ClientInfo(ip="203.0.113.7", user_agent="ua", accept_language="en", accept_encoding="gzip")
    changed = ClientInfo(**{**base.__dict__, field: "something-else"})
    assert compute_fingerprint(base) != compute_fingerprint(changed)
