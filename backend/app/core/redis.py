import redis.asyncio as redis
from typing import List, Optional, Tuple
from .config import settings

class RedisClient:
    def __init__(self, connection: Optional[redis.Redis] = None):
        self._redis: Optional[redis.Redis] = connection

    async def initialize(self):
        self._redis = await redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True
        )

    async def close(self):
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    @property
    def is_initialized(self) -> bool:
        return self._redis is not None

    @property
    def redis(self) -> redis.Redis:
        if not self._redis:
            raise RuntimeError("Redis client not initialized")
        return self._redis

    async def setex(self, key: str, expiry_seconds: int, value: str):
        await self.redis.setex(key, expiry_seconds, value)

    async def get(self, key: str) -> Optional[str]:
        result = await self.redis.get(key)
        if isinstance(result, bytes):
            result = result.decode("utf-8")
        return result if isinstance(result, str) else None

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self.redis.delete(*keys)

    async def exists(self, key: str) -> bool:
        return await self.redis.exists(key) > 0

    async def scan(self, cursor: int = 0, match: str = None, count: int = 100) -> Tuple[int, List[str]]:
        next_cursor, keys = await self.redis.scan(cursor, match=match, count=count)
        return next_cursor, [k.decode("utf-8") if isinstance(k, bytes) else k for k in keys]

    async def scan_all(self, match: str) -> List[str]:
        keys: List[str] = []
        cursor = 0
        while True:
            cursor, batch = await self.scan(cursor, match=match)
            keys.extend(batch)
            if cursor == 0:
                break
        return keys

redis_client = RedisClient()

def get_redis_client() -> RedisClient:
    return redis_client
