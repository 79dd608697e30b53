"""EphemeralStore protocol and its Redis implementation.

The store is a plain TTL key/value service; it knows nothing about OTPs or
rate limits. Every method maps to one atomic Redis command (or one MULTI/EXEC
block), which is what the recovery flow relies on instead of in-process locks:

- set_if_absent     → SET key value NX EX ttl
- replace_keep_ttl  → SET key value XX KEEPTTL
- get_and_delete    → GETDEL key
- increment_with_expiry → MULTI; INCR key; EXPIRE key ttl NX; EXEC

ttl() follows Redis: -2 when the key is absent, -1 when it has no expiry.
"""

from __future__ import annotations

from typing import Optional, Protocol

import redis.asyncio as aioredis

from shared.logging import get_logger

log = get_logger(__name__)

KEY_ABSENT = -2
NO_EXPIRY = -1

_GLOB_SPECIALS = ("\\", "*", "?", "[", "]")


class EphemeralStore(Protocol):
    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool: ...

    async def replace_keep_ttl(self, key: str, value: str) -> bool: ...

    async def get(self, key: str) -> Optional[str]: ...

    async def get_and_delete(self, key: str) -> Optional[str]: ...

    async def delete(self, *keys: str) -> int: ...

    async def exists(self, key: str) -> bool: ...

    async def ttl(self, key: str) -> int: ...

    async def increment_with_expiry(self, key: str, ttl_seconds: int) -> int: ...

    async def keys_by_prefix(self, prefix: str) -> list[str]: ...

    async def ping(self) -> bool: ...


def escape_glob(prefix: str) -> str:
    """Escape Redis glob metacharacters so *prefix* matches literally."""
    for ch in _GLOB_SPECIALS:
        prefix = prefix.replace(ch, "\\" + ch)
    return prefix


class RedisEphemeralStore:
    """EphemeralStore backed by an async redis client (decode_responses=True)."""

    def __init__(self, redis_client: aioredis.Redis, scan_count: int = 100) -> None:
        self._redis = redis_client
        self._scan_count = scan_count

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.set(key, value, ex=max(int(ttl_seconds), 1))

    async def set_if_absent(self, key: str, value: str, ttl_seconds: int) -> bool:
        result = await self._redis.set(
            key, value, nx=True, ex=max(int(ttl_seconds), 1)
        )
        return bool(result)

    async def replace_keep_ttl(self, key: str, value: str) -> bool:
        result = await self._redis.set(key, value, xx=True, keepttl=True)
        return bool(result)

    async def get(self, key: str) -> Optional[str]:
        return await self._redis.get(key)

    async def get_and_delete(self, key: str) -> Optional[str]:
        return await self._redis.getdel(key)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._redis.delete(*keys))

    async def exists(self, key: str) -> bool:
        return bool(await self._redis.exists(key))

    async def ttl(self, key: str) -> int:
        return int(await self._redis.ttl(key))

    async def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        async with self._redis.pipeline(transaction=True) as pipe:
            count, _ = await (
                pipe.incr(key).expire(key, max(int(ttl_seconds), 1), nx=True).execute()
            )
        return int(count)

    async def keys_by_prefix(self, prefix: str) -> list[str]:
        match = f"{escape_glob(prefix)}*"
        return [
            key
            async for key in self._redis.scan_iter(match=match, count=self._scan_count)
        ]

    async def ping(self) -> bool:
        return bool(await self._redis.ping())
