# app/db/redis_client.py
"""
Redis Connection Management
===========================

Singleton Redis client with connection pooling, used by the session store
when SESSION_BACKEND=redis.
"""

import logging
from typing import Optional
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool

from app.core.config import settings

logger = logging.getLogger(__name__)

# Global Redis client instance
_redis_client: Optional[redis.Redis] = None
_redis_pool: Optional[ConnectionPool] = None


def _build_pool() -> ConnectionPool:
    return ConnectionPool.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        socket_connect_timeout=5,
        socket_keepalive=True,
        health_check_interval=30,
    )


async def init_redis() -> redis.Redis:
    """
    Initialize Redis connection pool and client, then ping it.

    Call this during startup so a bad REDIS_URL fails fast.
    """
    client = get_redis()
    try:
        await client.ping()
    except Exception as e:
        logger.error(f"Failed to connect to Redis at {settings.REDIS_URL.split('@')[-1]}: {e}")
        raise

    logger.info("Redis connection established")
    return client


def get_redis() -> redis.Redis:
    """
    Get Redis client instance (SYNC function).

    The connection is not established until the first awaited operation.
    """
    global _redis_client, _redis_pool

    if _redis_client is None:
        _redis_pool = _build_pool()
        _redis_client = redis.Redis(connection_pool=_redis_pool)
        logger.info("Redis client initialized (lazy connection)")

    return _redis_client


async def close_redis():
    """
    Close Redis connection pool.

    Call this during shutdown.
    """
    global _redis_client, _redis_pool

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection closed")

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None
