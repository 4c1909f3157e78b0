import logging
from typing import Optional

import redis.exceptions
from fastapi import Request

from shortlink.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMITED_PREFIXES = ("/api/", "/analysis/")


def get_rate_limit_config():
    return settings.RATE_LIMIT_LIMIT, settings.RATE_LIMIT_WINDOW


def get_client_ip(request: Request) -> Optional[str]:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else None


def is_rate_limited_path(path: str) -> bool:
    return path.startswith(RATE_LIMITED_PREFIXES)


def check_rate_limit(redis_client, key: str, limit: int, window: int):
    """True when allowed, False when over the limit, None when not checked."""
    if redis_client is None:
        return None
    try:
        current = redis_client.get(key)
        if current and int(current) >= limit:
            return False

        pipe = redis_client.pipeline()
        pipe.incr(key, 1)
        if not current:
            pipe.expire(key, window)
        pipe.execute()
    except (redis.exceptions.RedisError, ValueError):
        logger.warning("Redis unavailable. Rate limiting skipped (fail open).")
        return None
    return True
