"""Async Redis connection factory and ephemeral-store selection.

create_redis_client returns an async redis.Redis client, or None if the
connection fails. build_ephemeral_store turns that into an EphemeralStore,
falling back to process memory when Redis is not configured or unreachable.
"""

from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from infrastructure.cache.ephemeral_store import EphemeralStore, RedisEphemeralStore
from infrastructure.cache.memory_store import InMemoryEphemeralStore
from shared.logging import get_logger

log = get_logger(__name__)


async def create_redis_client(redis_uri: str) -> Optional[aioredis.Redis]:
    """Connect to Redis and return a client, or None on failure."""
    try:
        client: aioredis.Redis = aioredis.from_url(redis_uri, decode_responses=True)
        await client.ping()
        log.info("redis_connected", uri=redis_uri.split("@")[-1])  # mask credentials
        return client
    except (RedisError, OSError) as e:
        log.warning(
            "redis_connection_failed", error=str(e), error_type=type(e).__name__
        )
        return None


async def build_ephemeral_store(
    redis_uri: Optional[str],
) -> tuple[EphemeralStore, Optional[aioredis.Redis]]:
    """Return the store to use and the Redis client backing it (if any)."""
    client = await create_redis_client(redis_uri) if redis_uri else None
    if client is None:
        log.warning("ephemeral_store_in_memory", reason="redis_unavailable")
        return InMemoryEphemeralStore(), None
    return RedisEphemeralStore(client), client
