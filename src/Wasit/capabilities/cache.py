"""Time-bounded cache of discovered process capabilities."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from Wasit.capabilities.discovery import Discovery, DiscoveryResult
from Wasit.capabilities.schema import ProcessCapabilitySnapshot

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CachedEntry:
    snapshot: ProcessCapabilitySnapshot
    discovered_at: float


class CapabilityCache:
    """Per-process snapshot cache with a fixed TTL.

    Expired entries are removed by the lookup that notices them or by
    ``sweep()``. Concurrent misses for the same process each run discovery;
    the last one to finish wins.
    """

    def __init__(
        self,
        discovery: Discovery,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._discovery = discovery
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CachedEntry] = {}

    def _is_expired(self, entry: CachedEntry, now: float | None = None) -> bool:
        now = self._clock() if now is None else now
        return now - entry.discovered_at >= self._ttl

    def get_cached(self, process_id: str) -> CachedEntry | None:
        entry = self._entries.get(process_id)
        if entry is None:
            return None
        if self._is_expired(entry):
            del self._entries[process_id]
            logger.debug("Evicted expired capabilities for %s", process_id)
            return None
        return entry

    async def get_or_discover(self, process_id: str, force_refresh: bool = False) -> DiscoveryResult:
        if not force_refresh:
            entry = self.get_cached(process_id)
            if entry is not None:
                return DiscoveryResult(success=True, process_id=process_id, snapshot=entry.snapshot)

        result = await self._discovery.discover(process_id)
        if result.success and result.snapshot is not None:
            self._entries[process_id] = CachedEntry(snapshot=result.snapshot, discovered_at=self._clock())
        return result

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [pid for pid, entry in self._entries.items() if self._is_expired(entry, now)]
        for pid in expired:
            del self._entries[pid]
        if expired:
            logger.info("Swept %d expired capability entr%s", len(expired), "y" if len(expired) == 1 else "ies")
        return len(expired)

    def invalidate(self, process_id: str) -> bool:
        return self._entries.pop(process_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def cached_actions(self, process_id: str) -> list[str]:
        entry = self.get_cached(process_id)
        return list(entry.snapshot.actions) if entry else []

    def supports_action(self, process_id: str, action: str) -> bool:
        entry = self.get_cached(process_id)
        return bool(entry and entry.snapshot.supports_action(action))

    def stats(self) -> dict[str, int]:
        now = self._clock()
        expired = sum(1 for entry in self._entries.values() if self._is_expired(entry, now))
        total = len(self._entries)
        return {"total": total, "valid": total - expired, "expired": expired}
