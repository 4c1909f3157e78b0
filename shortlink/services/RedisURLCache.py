import json
import logging
from typing import Optional

import redis.exceptions

from shortlink.core.config import settings
from shortlink.db.Connection import database

logger = logging.getLogger(__name__)


def _cache_key(short_code: str) -> str:
    return f"url:{short_code}"


def get(short_code: str) -> Optional[dict]:
    """Cached ``{id, short_code, long_url}`` for an active link, or None on miss."""
    client = database.get_redis_client()
    if client is None:
        return None

    try:
        cached = client.get(_cache_key(short_code))
    except redis.exceptions.RedisError:
        logger.warning(f"Redis lookup failed for {short_code}")
        return None

    if not cached:
        return None

    try:
        if isinstance(cached, (bytes, bytearray)):
            cached = cached.decode()
        entry = json.loads(cached)
    except (UnicodeDecodeError, ValueError):
        logger.warning(f"Discarding unreadable cache entry for {short_code}")
        return None

    logger.debug(f"Redirect cache HIT for {short_code} -> {entry.get('long_url')}")
    return entry


def put(link) -> None:
    if not link.is_active:
        return
    client = database.get_redis_client()
    if client is None:
        return

    entry = json.dumps({"id": link.id, "short_code": link.short_code, "long_url": link.long_url})
    try:
        client.setex(_cache_key(link.short_code), settings.CACHE_TTL, entry)
        logger.debug(f"Cached {link.short_code} -> {link.long_url[:50]}")
    except redis.exceptions.RedisError:
        logger.warning(f"Failed to cache {link.short_code}, Redis unavailable")


def invalidate(short_code: str) -> None:
    client = database.get_redis_client()
    if client is None:
        return
    try:
        client.delete(_cache_key(short_code))
    except redis.exceptions.RedisError:
        logger.warning(f"Failed to invalidate cache for {short_code}, Redis unavailable")
