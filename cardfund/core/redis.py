"""Redis connection management for CardFund Billing."""

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import redis.asyncio as redis

from cardfund.core.config import get_settings

# Redis connection pool (initialized in lifespan / worker startup)
_redis_pool: redis.Redis | None = None

# Builds the context manager that serializes billing writes for one user
UserLockFactory = Callable[[int], AbstractAsyncContextManager[Any]]


async def init_redis() -> None:
    """Initialize Redis connection pool.

    Call this during application or worker startup.
    """
    global _redis_pool
    settings = get_settings()
    _redis_pool = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )


async def close_redis() -> None:
    """Close Redis connection pool.

    Call this during application or worker shutdown.
    """
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


def get_redis() -> redis.Redis:
    """Get Redis connection.

    Returns:
        Redis client instance

    Raises:
        RuntimeError: If Redis is not initialized
    """
    if _redis_pool is None:
        raise RuntimeError("Redis not initialized. Call init_redis() during application startup.")
    return _redis_pool


def build_user_lock_key(user_id: int) -> str:
    """Build the lock key serializing balance debits for one user.

    Key format: lock:billing:{user_id}
    """
    return f"lock:billing:{user_id}"


@asynccontextmanager
async def user_lock(user_id: int) -> AsyncIterator[None]:
    """Hold the per-user billing lock for the duration of the block.

    Raises:
        redis.exceptions.LockError: If the lock cannot be acquired in time
    """
    settings = get_settings()
    lock = get_redis().lock(
        build_user_lock_key(user_id),
        timeout=settings.monthly_fee_lock_timeout,
        blocking_timeout=settings.monthly_fee_lock_timeout,
    )
    async with lock:
        yield
