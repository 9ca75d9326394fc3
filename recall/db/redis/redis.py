import logging

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from recall.config import get_settings

logger = logging.getLogger(__name__)

_pool: ConnectionPool | None = None


def get_redis_pool() -> ConnectionPool:
    """Process-wide pool; responses are decoded so hashes come back as str."""
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = ConnectionPool(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
            max_connections=settings.redis_max_connections,
        )
    return _pool


def get_redis_client() -> Redis:
    return Redis(connection_pool=get_redis_pool())


async def ping_redis() -> bool:
    try:
        return bool(await get_redis_client().ping())
    except RedisError as e:
        logger.error(f"Redis ping failed: {e}")
        return False


async def close_redis_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.disconnect()
        _pool = None
        logger.info("Redis pool closed")
