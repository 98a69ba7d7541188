"""Redis cache of rendered lesson content per language."""

import json
import logging
from datetime import datetime
from typing import Any, Optional

from redis.asyncio import Redis

from config.settings import settings

logger = logging.getLogger(__name__)


class ContentCacheStore:
    """
    Durable store of lesson artifacts keyed by (language, lesson, content type).

    Each artifact is a JSON envelope with the content and the time it was
    stored. Writes overwrite, so the last writer wins.
    """

    def __init__(self, redis: Optional[Redis], prefix: Optional[str] = None):
        self.redis = redis
        self.prefix = prefix or settings.CONTENT_CACHE_PREFIX

    def is_configured(self) -> bool:
        return self.redis is not None

    def _key(self, language_code: str, lesson_id: Any, content_type: str) -> str:
        return f"{self.prefix}:{language_code}:{lesson_id}:{content_type}"

    async def exists(self, language_code: str, lesson_id: Any, content_type: str = "text") -> bool:
        if not self.is_configured():
            return False

        try:
            return bool(await self.redis.exists(self._key(language_code, lesson_id, content_type)))
        except Exception as e:
            logger.warning(f"Failed to check cached content {language_code}/{lesson_id}/{content_type}: {e}")
            return False

    async def get(self, language_code: str, lesson_id: Any, content_type: str = "text") -> Optional[Any]:
        """
        Retrieve cached content.

        Returns:
            The stored content, or None on a miss, an unreadable entry or a
            Redis failure
        """
        if not self.is_configured():
            return None

        cache_key = self._key(language_code, lesson_id, content_type)
        try:
            raw = await self.redis.get(cache_key)
        except Exception as e:
            logger.warning(f"Failed to read cached content {cache_key}: {e}")
            return None

        if raw is None:
            logger.debug(f"Cache MISS for key: {cache_key}")
            return None

        try:
            envelope = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable cache entry: {cache_key}")
            return None

        logger.debug(f"Cache HIT for key: {cache_key}")
        return envelope.get("content")

    async def put(self, language_code: str, lesson_id: Any, content_type: str, content: Any) -> str:
        """
        Store content, overwriting any previous artifact.

        Returns:
            The cache key written

        Raises:
            Exception: when Redis rejects the write; callers decide whether to swallow
        """
        cache_key = self._key(language_code, lesson_id, content_type)
        if not self.is_configured():
            logger.debug(f"Cache not configured, dropping write for {cache_key}")
            return cache_key

        envelope = {
            "content": content,
            "stored_at": datetime.utcnow().isoformat(),
        }
        await self.redis.set(cache_key, json.dumps(envelope))
        logger.info(f"Cached lesson content with key: {cache_key}")
        return cache_key

    async def delete(self, language_code: str, lesson_id: Any, content_type: Optional[str] = None) -> int:
        """
        Delete one artifact, or every content type of the lesson when
        content_type is None.

        Returns:
            Number of keys deleted
        """
        if not self.is_configured():
            return 0

        if content_type is not None:
            return int(await self.redis.delete(self._key(language_code, lesson_id, content_type)))

        pattern = f"{self.prefix}:{language_code}:{lesson_id}:*"
        keys = [key async for key in self.redis.scan_iter(match=pattern, count=100)]
        if not keys:
            return 0
        return int(await self.redis.delete(*keys))
