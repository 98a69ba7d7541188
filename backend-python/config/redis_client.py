import redis.asyncio as aioredis
from redis.asyncio import Redis
from typing import Optional
import logging

from config.settings import settings

logger = logging.getLogger(__name__)


class RedisClient:
    """Redis client wrapper owning the lesson content cache connection"""

    def __init__(self, url: Optional[str] = None):
        self.url = settings.REDIS_URL if url is None else url
        self.cache_client: Optional[Redis] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    async def connect(self):
        """Initialize Redis connection"""
        if not self.is_configured:
            logger.warning("REDIS_URL not set, lesson content cache disabled")
            return

        try:
            self.cache_client = aioredis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=10
            )
            await self.cache_client.ping()
            logger.info("✅ Redis connection initialized")
        except Exception as e:
            logger.error(f"❌ Redis connection failed: {e}")
            raise

    async def disconnect(self):
        """Close Redis connection"""
        if self.cache_client:
            await self.cache_client.aclose()
            self.cache_client = None
        logger.info("🔌 Redis connection closed")

    async def ping(self) -> bool:
        if not self.cache_client:
            return False
        return bool(await self.cache_client.ping())
