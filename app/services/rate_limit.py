import logging

from fastapi import Depends

from app.core.config import settings
from app.core.redis_client import get_redis

logger = logging.getLogger(__name__)


class AccessRateLimiter:
    """Fixed-window counter kept in Redis, shared by every app instance"""

    def __init__(self, redis_client, limit: int, window_seconds: int, prefix: str = "access_attempts"):
        self.redis = redis_client
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix

    async def hit(self, key: str) -> bool:
        """Count one attempt for ``key``; False once the window's limit is exceeded"""
        name = f"{self.prefix}:{key}"
        count = await self.redis.incr(name)
        if count == 1:
            await self.redis.expire(name, self.window_seconds)
        if count > self.limit:
            logger.warning("Rate limit exceeded for %s (%d attempts)", key, count)
            return False
        return True


async def get_access_rate_limiter(redis_client=Depends(get_redis)) -> AccessRateLimiter:
    return AccessRateLimiter(
        redis_client,
        limit=settings.ACCESS_RATE_LIMIT,
        window_seconds=settings.ACCESS_RATE_WINDOW_SECONDS,
    )
