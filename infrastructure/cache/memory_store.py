"""Single-node, in-process EphemeralStore.

Used when no Redis URI is configured and as the store in tests. Each public
method runs under one asyncio.Lock, so every operation is atomic with respect
to other coroutines in the same process. Expired keys are evicted on access,
and every write sweeps all expired keys once sweep_interval seconds have
passed since the previous sweep. Nothing survives a restart.
"""

from __future__ import annotations

import asyncio
import math
import time
from typing import Callable, Optional

from infrastructure.cache.ephemeral_store import KEY_ABSENT, NO_EXPIRY


class InMemoryEphemeralStore:
    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, Optional[float]]] = {}
        self._lock = asyncio.Lock()
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def entry_count(self) -> int:
        """Entries held, expired or not."""
        return len(self._data)

    def _live(self, key: str) -> Optional[tuple[str, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return entry

    def _expiry(self, ttl_seconds: int) -> float:
        return self._clock() + max(int(ttl_seconds), 1)

    def _sweep_if_due(self) -> None:
        now = self._clock()
        if now < self._next_sweep:
            return
        expired = [
            key
            for key, (_, expires_at) in self._data.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self._sweep_interval

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        async with self._lock:
            self._sweep_if_due()
            self._data[key] = (value, self._expiry(ttl_seconds))

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        async with self._lock:
            self._sweep_if_due()
            if self._live(key) is not None:
                return False
            self._data[key] = (value, self._expiry(ttl_seconds))
            return True

    async def replace_keep_ttl(self, key: str, value: str) -> bool:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return False
            self._data[key] = (value, entry[1])
            return True

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    async def get_and_delete(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return None
            del self._data[key]
            return entry[0]

    async def delete(self, *keys: str) -> int:
        async with self._lock:
            removed = 0
            for key in keys:
                if self._live(key) is not None:
                    del self._data[key]
                    removed += 1
            return removed

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return self._live(key) is not None

    async def ttl(self, key: str) -> int:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return KEY_ABSENT
            expires_at = entry[1]
            if expires_at is None:
                return NO_EXPIRY
            return max(math.ceil(expires_at - self._clock()), 0)

    async def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        async with self._lock:
            self._sweep_if_due()
            entry = self._live(key)
            if entry is None:
                self._data[key] = ("1", self._expiry(ttl_seconds))
                return 1
            value, expires_at = entry
            count = int(value) + 1
            self._data[key] = (str(count), expires_at)
            return count

    async def keys_by_prefix(self, prefix: str) -> list[str]:
        async with self._lock:
            return [
                key
                for key in list(self._data)
                if key.startswith(prefix) and self._live(key) is not None
            ]

    async def ping(self) -> bool:
        return True
