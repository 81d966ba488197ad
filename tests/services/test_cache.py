"""Tests for the best-effort Redis cache."""

from __future__ import annotations

from unittest.mock import MagicMock

import redis
from pydantic import TypeAdapter

from ideanest.schemas.idea import TrendingTag
from ideanest.services.cache import CacheService

ADAPTER = TypeAdapter(list[TrendingTag])


def _loader(calls: list[int]):
    def load() -> list[TrendingTag]:
        calls.append(1)
        return [TrendingTag(tag="python", idea_count=2, like_count=7)]

    return load


def test_disabled_cache_always_loads() -> None:
    cache = CacheService(None)
    calls: list[int] = []

    cache.get_or_load("k", ADAPTER, _loader(calls))
    cache.get_or_load("k", ADAPTER, _loader(calls))

    assert len(calls) == 2
    assert cache.enabled is False
    assert cache.ping() is None


def test_hit_skips_the_loader() -> None:
    client = MagicMock()
    client.get.return_value = ADAPTER.dump_json([TrendingTag(tag="web", idea_count=1, like_count=3)])
    cache = CacheService(client, prefix="test")
    calls: list[int] = []

    value = cache.get_or_load(cache.key("trending", "tags"), ADAPTER, _loader(calls))

    assert calls == []
    assert value[0].tag == "web"
    client.get.assert_called_once_with("test:trending:tags")


def test_miss_stores_loaded_value_with_ttl() -> None:
    client = MagicMock()
    client.get.return_value = None
    cache = CacheService(client, default_ttl=60)
    calls: list[int] = []

    value = cache.get_or_load("key", ADAPTER, _loader(calls), ttl=120)

    assert value[0].like_count == 7
    client.set.assert_called_once()
    assert client.set.call_args.kwargs["ex"] == 120


def test_redis_failure_degrades_to_loader() -> None:
    """An unreachable cache never fails the request."""
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    client.set.side_effect = redis.ConnectionError("down")
    client.delete.side_effect = redis.ConnectionError("down")
    client.ping.side_effect = redis.ConnectionError("down")
    cache = CacheService(client)
    calls: list[int] = []

    value = cache.get_or_load("key", ADAPTER, _loader(calls))
    cache.delete("key")

    assert len(calls) == 1
    assert value[0].tag == "python"
    assert cache.ping() is False


def test_malformed_entry_is_discarded() -> None:
    client = MagicMock()
    client.get.return_value = b"{not json"
    cache = CacheService(client)
    calls: list[int] = []

    cache.get_or_load("key", ADAPTER, _loader(calls))

    assert len(calls) == 1
    client.delete.assert_called_once_with("key")
