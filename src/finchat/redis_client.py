"""Redis connection for the shared pending-confirmation store."""

import logging
import os

import redis

logger = logging.getLogger(__name__)


def redis_enabled() -> bool:
    """Redis is opt-in through REDIS_ENABLED=true."""
    return os.environ.get("REDIS_ENABLED", "false").lower() == "true"


def get_redis_client(
    url: str | None = None,
    host: str | None = None,
    port: int | None = None,
    db: int = 0,
) -> redis.Redis | None:
    """Connect to Redis, or return None when disabled or unreachable.

    ``url`` (or REDIS_URL) takes precedence over ``host``/``port``
    (REDIS_HOST/REDIS_PORT, default localhost:6379).
    """
    if not redis_enabled():
        logger.info("Redis disabled; pending confirmations stay in-process")
        return None

    url = url or os.environ.get("REDIS_URL")
    timeouts = {"socket_connect_timeout": 2, "socket_timeout": 2}
    if url:
        client = redis.Redis.from_url(url, **timeouts)
        target = url.rsplit("@", 1)[-1]
    else:
        host = host or os.environ.get("REDIS_HOST", "localhost")
        port = port or int(os.environ.get("REDIS_PORT", "6379"))
        client = redis.Redis(host=host, port=port, db=db, **timeouts)
        target = f"{host}:{port}/{db}"

    try:
        client.ping()
    except redis.ConnectionError as e:
        logger.warning("Redis at %s unreachable: %s", target, e)
        return None
    except redis.RedisError as e:
        logger.error("Redis at %s rejected the connection: %s", target, e)
        return None

    logger.info("Connected to Redis at %s", target)
    return client
