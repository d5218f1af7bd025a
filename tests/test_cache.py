"""Capability cache TTL behaviour."""

from __future__ import annotations

import pytest

from Wasit.capabilities.cache import CapabilityCache
from Wasit.capabilities.discovery import Discovery

from conftest import PROCESS_ID, FakeClock, FakeTransport


def _cache(transport: FakeTransport, clock: FakeClock, ttl: float = 300.0) -> CapabilityCache:
    return CapabilityCache(Discovery(transport, timeout_ms=500, clock=clock), ttl_seconds=ttl, clock=clock)


def _info_requests(transport: FakeTransport) -> int:
    return sum(1 for m in transport.sent if m.action == "Info")


@pytest.mark.asyncio
async def test_hit_within_ttl_reuses_snapshot() -> None:
    transport, clock = FakeTransport(), FakeClock()
    cache = _cache(transport, clock)

    first = await cache.get_or_discover(PROCESS_ID)
    clock.now += 299
    second = await cache.get_or_discover(PROCESS_ID)

    assert first.snapshot.discovered_at == second.snapshot.discovered_at
    assert _info_requests(transport) == 1


@pytest.mark.asyncio
async def test_expired_entry_triggers_new_discovery() -> None:
    transport, clock = FakeTransport(), FakeClock()
    cache = _cache(transport, clock)

    first = await cache.get_or_discover(PROCESS_ID)
    clock.now += 300
    second = await cache.get_or_discover(PROCESS_ID)

    assert second.snapshot.discovered_at > first.snapshot.discovered_at
    assert _info_requests(transport) == 2


@pytest.mark.asyncio
async def test_force_refresh_bypasses_cache() -> None:
    transport, clock = FakeTransport(), FakeClock()
    cache = _cache(transport, clock)
    await cache.get_or_discover(PROCESS_ID)
    await cache.get_or_discover(PROCESS_ID, force_refresh=True)
    assert _info_requests(transport) == 2


@pytest.mark.asyncio
async def test_failed_discovery_is_not_cached() -> None:
    transport, clock = FakeTransport(), FakeClock()
    transport.info_response = {"Messages": []}
    cache = _cache(transport, clock)

    result = await cache.get_or_discover(PROCESS_ID)

    assert result.success is False
    assert cache.get_cached(PROCESS_ID) is None
    assert cache.stats() == {"total": 0, "valid": 0, "expired": 0}


@pytest.mark.asyncio
async def test_sweep_and_stats() -> None:
    transport, clock = FakeTransport(), FakeClock()
    cache = _cache(transport, clock, ttl=10)
    await cache.get_or_discover("a" * 43)
    clock.now += 5
    await cache.get_or_discover("b" * 43)
    clock.now += 6

    assert cache.stats() == {"total": 2, "valid": 1, "expired": 1}
    assert cache.sweep() == 1
    assert cache.stats() == {"total": 1, "valid": 1, "expired": 0}
    assert cache.sweep() == 0


@pytest.mark.asyncio
async def test_lookup_helpers() -> None:
    transport, clock = FakeTransport(), FakeClock()
    cache = _cache(transport, clock)
    assert cache.cached_actions(PROCESS_ID) == []

    await cache.get_or_discover(PROCESS_ID)

    assert "Transfer" in cache.cached_actions(PROCESS_ID)
    assert cache.supports_action(PROCESS_ID, "transfer") is True
    assert cache.supports_action(PROCESS_ID, "Vote") is False
    assert cache.invalidate(PROCESS_ID) is True
    assert cache.get_cached(PROCESS_ID) is None
