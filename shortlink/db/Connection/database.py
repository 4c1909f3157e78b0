"""Process-wide handles for the SQL store and the Redis client.

Both are lazily created singletons. ``init_database`` is the one place the
engine is built: call it once at startup (or let ``get_engine`` call it with
the configured URL on first use). Calling it again without
``dispose_database`` in between is a programming error and raises.
"""
import logging
from typing import Optional

import redis
import redis.exceptions
from redis.connection import ConnectionPool
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from shortlink.core.config import settings

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None
_redis_client: Optional[redis.Redis] = None
_redis_initialized = False


def init_database(url: Optional[str] = None, **engine_kwargs) -> Engine:
    global _engine, _session_factory
    if _engine is not None:
        raise RuntimeError("Database already initialized; call dispose_database() first")

    url = url or settings.database_url
    engine_kwargs.setdefault("pool_pre_ping", True)
    if url.startswith("sqlite"):
        connect_args = engine_kwargs.setdefault("connect_args", {})
        connect_args.setdefault("check_same_thread", False)

    _engine = create_engine(url, future=True, **engine_kwargs)
    _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=_engine, future=True)
    logger.info("Database engine initialized for %s", _engine.url.render_as_string(hide_password=True))
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        init_database()
    return _engine


def get_session_factory() -> sessionmaker:
    if _session_factory is None:
        init_database()
    return _session_factory


def dispose_database():
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def get_db():
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def init_redis(client: Optional[redis.Redis] = None) -> Optional[redis.Redis]:
    """Install the shared Redis client.

    With no argument the client is built from settings, or left as ``None``
    when REDIS_HOST is not configured.
    """
    global _redis_client, _redis_initialized
    if client is None and settings.REDIS_HOST:
        pool = ConnectionPool(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            decode_responses=True,
            max_connections=50,
            socket_connect_timeout=2,
            socket_keepalive=True,
            retry_on_timeout=True,
        )
        client = redis.Redis(connection_pool=pool)
    _redis_client = client
    _redis_initialized = True
    return _redis_client


def get_redis_client() -> Optional[redis.Redis]:
    if not _redis_initialized:
        init_redis()
    return _redis_client


def close_redis():
    global _redis_client, _redis_initialized
    if _redis_client is not None:
        try:
            _redis_client.close()
        except redis.exceptions.RedisError:
            logger.debug("Error closing Redis client")
    _redis_client = None
    _redis_initialized = False


def verify_redis_connection():
    client = get_redis_client()
    if client is None:
        logger.info("Redis not configured; cache and rate limiting disabled")
        return True
    try:
        client.ping()
        logger.info("Redis connection verified")
        return True
    except redis.exceptions.ConnectionError as e:
        logger.warning(f"Redis connection failed: {e}. Service will run with degraded performance.")
        return False
    except Exception as e:
        logger.error(f"Unexpected Redis error: {e}")
        return False


def verify_database_connection():
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
