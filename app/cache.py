"""Cache management module."""
from typing import Optional

import redis.asyncio as redis

from app.config import settings


class CacheManager:
    """Cache Redis des réponses de recherche."""

    def __init__(self, redis_url: str = settings.REDIS_URL, prefix: str = "temples"):
        self.redis_url = redis_url
        self.prefix = prefix
        self.redis = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    async def get(self, key: str) -> Optional[str]:
        """Get a value from the cache."""
        return await self.redis.get(self._key(key))

    async def set(self, key: str, value: str, expire: int = settings.CACHE_TTL_SECONDS):
        """Set a value in the cache with a TTL in seconds."""
        await self.redis.set(self._key(key), value, ex=expire)

    async def ping(self) -> bool:
        """Vérifie la connexion Redis."""
        return await self.redis.ping()

    async def close(self):
        """Close the Redis connection."""
        await self.redis.aclose()


cache_manager = CacheManager()
