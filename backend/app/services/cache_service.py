"""
Redis caching service for the public property listing.

CACHING STRATEGY
================

What we cache:
  - The serialized public listing (GET /properties), newest first
  - Cache key: "properties:list:all"

Invalidation strategy:
  - Any property create / update / delete deletes every "properties:list:*" key
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

What is never cached:
  - Per-user listings and booking data (owner / availability filters and
    overlap checks need the live rows)
  - /properties/{id}/is-booked (must reflect bookings immediately)

Redis is advisory: every failure is logged and the request falls back to the
database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

PROPERTY_LIST_PREFIX = "properties:list:"
PUBLIC_LIST_KEY = f"{PROPERTY_LIST_PREFIX}all"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_cached_property_list() -> Optional[list[dict]]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(PUBLIC_LIST_KEY)
    except Exception as e:
        logger.error("cache_get_error", key=PUBLIC_LIST_KEY, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data is None:
        logger.debug("cache_miss", key=PUBLIC_LIST_KEY)
        return None
    logger.debug("cache_hit", key=PUBLIC_LIST_KEY)
    return json.loads(data)


async def set_cached_property_list(properties: list[dict]) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(PUBLIC_LIST_KEY, settings.REDIS_CACHE_TTL, json.dumps(properties, default=str))
        logger.debug("cache_set", key=PUBLIC_LIST_KEY, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=PUBLIC_LIST_KEY, error=str(e))


async def invalidate_property_cache() -> None:
    """Drop every cached property listing (SCAN over the key prefix)."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{PROPERTY_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
