"""
Chat summary service
Issues sealed summary tokens and resolves replayed ones for a user/task
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from app.core.config import settings
from app.core.summary_seal import (
    InvalidSummaryInput,
    is_valid_task_id,
    now_ms,
    seal_summary,
    unseal_summary,
)
from app.schemas.summary import SealedSummary
from app.services.summary_store import SummaryTokenStore

logger = logging.getLogger(__name__)

RESOLVED_OK = "ok"
RESOLVED_MISSING = "missing"
RESOLVED_INVALID = "invalid"
RESOLVED_USER_MISMATCH = "user_mismatch"
RESOLVED_TASK_MISMATCH = "task_mismatch"
RESOLVED_EXPIRED = "expired"


class SummarySecretMissing(RuntimeError):
    """Raised when summaries are requested but SUMMARY_SECRET is not set"""
    pass


@dataclass(frozen=True)
class SummaryResolution:
    reason: str
    payload: Optional[SealedSummary] = None

    @property
    def valid(self) -> bool:
        return self.reason == RESOLVED_OK

    @property
    def summary_text(self) -> str:
        return self.payload.summary if self.valid and self.payload else ""


def _short(user_id: str) -> str:
    return user_id[:8] + "..." if len(user_id) > 8 else user_id


class SummaryService:
    def __init__(
        self,
        secret: str,
        max_age_minutes: Optional[int] = None,
        store: Optional[SummaryTokenStore] = None
    ):
        self.secret = secret
        self.max_age_ms = max_age_minutes * 60 * 1000 if max_age_minutes is not None else None
        self.store = store

    def _require_secret(self):
        if not self.secret:
            raise SummarySecretMissing("SUMMARY_SECRET is not configured")

    async def issue(self, user_id: str, task_id: str, summary: str, store: bool = False) -> str:
        """Seal a fresh summary, optionally replacing the stored token"""
        self._require_secret()
        if not is_valid_task_id(task_id):
            raise InvalidSummaryInput(f"Invalid task id: {task_id!r}")

        token = seal_summary(self.secret, user_id, task_id, summary)
        logger.info(
            f"Summary sealed: user={_short(user_id)} task={task_id} length={len(summary)}"
        )

        if store and self.store is not None:
            await self.store.save(user_id, task_id, token)
        return token

    def resolve(
        self,
        user_id: str,
        task_id: str,
        token: Optional[str],
        current_ms: Optional[int] = None
    ) -> SummaryResolution:
        """Unseal a token and check it belongs to this user and task"""
        self._require_secret()
        if not token:
            return SummaryResolution(RESOLVED_MISSING)

        payload = unseal_summary(self.secret, token)
        if payload is None:
            resolution = SummaryResolution(RESOLVED_INVALID)
        elif payload.user_id != user_id:
            resolution = SummaryResolution(RESOLVED_USER_MISMATCH)
        elif payload.task_id != task_id:
            resolution = SummaryResolution(RESOLVED_TASK_MISMATCH)
        elif self.max_age_ms is not None and \
                (current_ms if current_ms is not None else now_ms()) - payload.issued_at_ms > self.max_age_ms:
            resolution = SummaryResolution(RESOLVED_EXPIRED)
        else:
            return SummaryResolution(RESOLVED_OK, payload)

        logger.warning(
            f"Summary token rejected ({resolution.reason}): user={_short(user_id)} task={task_id}"
        )
        return resolution

    def current_summary(self, user_id: str, task_id: str, token: Optional[str]) -> str:
        """Summary text to continue from, or empty when there is none to trust"""
        return self.resolve(user_id, task_id, token).summary_text

    async def resolve_stored(self, user_id: str, task_id: str) -> SummaryResolution:
        """Resolve the stored token for a task, dropping it if it no longer verifies"""
        self._require_secret()
        if self.store is None:
            return SummaryResolution(RESOLVED_MISSING)

        token = await self.store.load(user_id, task_id)
        resolution = self.resolve(user_id, task_id, token)
        if token and not resolution.valid:
            await self.store.clear(user_id, task_id)
        return resolution

    async def store_token(self, user_id: str, task_id: str, token: str) -> bool:
        """Store a client-supplied token only if it resolves for this user/task"""
        if self.store is None or not self.resolve(user_id, task_id, token).valid:
            return False
        return await self.store.save(user_id, task_id, token)

    async def list_stored_task_ids(self, user_id: str) -> List[str]:
        if self.store is None:
            return []
        return await self.store.list_task_ids(user_id)

    async def clear_stored(self, user_id: str, task_id: str) -> bool:
        if self.store is None:
            return False
        return await self.store.clear(user_id, task_id)

    async def clear_all_stored(self, user_id: str) -> int:
        if self.store is None:
            return 0
        return await self.store.clear_all(user_id)


def get_summary_service() -> SummaryService:
    return SummaryService(
        secret=settings.SUMMARY_SECRET,
        max_age_minutes=settings.SUMMARY_MAX_AGE_MINUTES,
        store=SummaryTokenStore()
    )
