"""Tests for the TTL projection cache."""

from __future__ import annotations

from projection_cache import ProjectionCache, cache_key


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = ProjectionCache(ttl_seconds=60, clock=clock)

    cache.put(2025, 14, ["row"])
    assert cache.get(2025, 14) == ["row"]
    assert cache.timestamp(2025, 14) == 1000.0

    clock.now += 61
    assert cache.get(2025, 14) is None
    assert cache.peek(2025, 14) == ["row"]


def test_get_or_fetch_only_fetches_when_stale() -> None:
    clock = FakeClock()
    cache = ProjectionCache(ttl_seconds=60, clock=clock)
    calls = []

    def fetch():
        calls.append(clock.now)
        return {"n": len(calls)}

    assert cache.get_or_fetch(2025, 1, fetch) == {"n": 1}
    clock.now += 30
    assert cache.get_or_fetch(2025, 1, fetch) == {"n": 1}
    clock.now += 31
    assert cache.get_or_fetch(2025, 1, fetch) == {"n": 2}
    assert len(calls) == 2


def test_writes_swap_the_mapping_instead_of_mutating_it() -> None:
    cache = ProjectionCache(clock=FakeClock())
    cache.put(2025, 1, "a")
    before = cache._entries
    cache.put(2025, 2, "b")
    assert cache._entries is not before
    assert cache_key(2025, 2) not in before


def test_clear_one_key_or_everything() -> None:
    cache = ProjectionCache(clock=FakeClock())
    cache.put(2025, 1, "a")
    cache.put(2025, 2, "b")

    cache.clear(2025, 1)
    assert cache.peek(2025, 1) is None
    assert cache.peek(2025, 2) == "b"

    cache.clear()
    assert cache.peek(2025, 2) is None
