"""
Redis storage for sealed summary tokens
Keeps the latest token per user/task so it can be replayed on the next chat
"""
import logging
import re
from typing import List, Optional

from redis.exceptions import RedisError

from app.core.config import settings
from app.core.redis import RedisClient, get_redis_client

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")


def _escape_glob(value: str) -> str:
    return _GLOB_SPECIAL.sub(r"\\\1", value)


class SummaryTokenStore:
    """Stores one opaque summary token per user and task.

    Tokens are never inspected here; validation is the caller's job. Storage
    errors are logged and reported as "nothing stored".
    """

    KEY_PREFIX = "summary"

    def __init__(self, redis: Optional[RedisClient] = None, ttl_seconds: Optional[int] = None):
        self.redis = redis or get_redis_client()
        self.ttl_seconds = ttl_seconds or settings.SUMMARY_STORE_TTL_SECONDS

    def _key(self, user_id: str, task_id: str) -> str:
        return f"{self.KEY_PREFIX}:{user_id}:{task_id}"

    def _user_prefix(self, user_id: str) -> str:
        return f"{self.KEY_PREFIX}:{user_id}:"

    async def load(self, user_id: str, task_id: str) -> Optional[str]:
        try:
            return await self.redis.get(self._key(user_id, task_id))
        except RedisError as e:
            logger.warning(f"Summary token load failed for task {task_id}: {e}")
            return None

    async def save(self, user_id: str, task_id: str, token: str) -> bool:
        """Store a token, replacing any previous one for the task"""
        try:
            await self.redis.setex(self._key(user_id, task_id), self.ttl_seconds, token)
            return True
        except RedisError as e:
            logger.warning(f"Summary token save failed for task {task_id}: {e}")
            return False

    async def clear(self, user_id: str, task_id: str) -> bool:
        try:
            await self.redis.delete(self._key(user_id, task_id))
            return True
        except RedisError as e:
            logger.warning(f"Summary token clear failed for task {task_id}: {e}")
            return False

    async def has(self, user_id: str, task_id: str) -> bool:
        try:
            return await self.redis.exists(self._key(user_id, task_id))
        except RedisError as e:
            logger.warning(f"Summary token lookup failed for task {task_id}: {e}")
            return False

    async def _user_keys(self, user_id: str) -> List[str]:
        prefix = self._user_prefix(user_id)
        keys = await self.redis.scan_all(match=_escape_glob(prefix) + "*")
        return [key for key in keys if key.startswith(prefix)]

    async def clear_all(self, user_id: str) -> int:
        """Remove every stored token for a user, returning how many were removed"""
        try:
            keys = await self._user_keys(user_id)
            if not keys:
                return 0
            return await self.redis.delete(*keys)
        except RedisError as e:
            logger.warning(f"Summary token clear-all failed: {e}")
            return 0

    async def list_task_ids(self, user_id: str) -> List[str]:
        try:
            keys = await self._user_keys(user_id)
        except RedisError as e:
            logger.warning(f"Summary token listing failed: {e}")
            return []
        prefix = self._user_prefix(user_id)
        return sorted(key[len(prefix):] for key in keys)
