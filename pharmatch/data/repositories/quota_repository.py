"""
Quota usage repository for PharMatch.

Each (actor_id, action_kind, period_start) document is a counter. The
check-and-increment is a single conditional update so two concurrent
consumers can never both take the last unit.
"""

from datetime import datetime
from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from pharmatch.data.database import QUOTAS
from pharmatch.data.models.base import utcnow
from pharmatch.data.models.quota import QuotaUsage
from pharmatch.utils.constants import ActionKind
from pharmatch.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


def _quota_key(actor_id: str, action_kind: ActionKind | str, period_start: datetime) -> dict:
    return {
        "actor_id": actor_id,
        "action_kind": ActionKind(action_kind).value,
        "period_start": period_start,
    }


class QuotaRepository(BaseRepository[QuotaUsage]):
    """Repository for per-period action counters."""

    @property
    def collection_name(self) -> str:
        return QUOTAS

    @property
    def model_class(self) -> type[QuotaUsage]:
        return QuotaUsage

    def get(
        self,
        actor_id: str,
        action_kind: ActionKind | str,
        period_start: datetime,
    ) -> Optional[QuotaUsage]:
        """Counter for a period, or None if nothing was consumed yet."""
        return self.find_one(_quota_key(actor_id, action_kind, period_start))

    def ensure_period(
        self,
        actor_id: str,
        action_kind: ActionKind | str,
        period_start: datetime,
        limit: Optional[int],
    ) -> None:
        """
        Create the counter for a period at zero if it does not exist yet.

        The recorded limit is refreshed so that a tier change mid-period
        applies from the next consumption on.
        """
        now = utcnow()
        try:
            self.collection.update_one(
                _quota_key(actor_id, action_kind, period_start),
                {
                    "$set": {"limit": limit, "updated_at": now},
                    "$setOnInsert": {"used": 0, "created_at": now},
                },
                upsert=True,
            )
        except DuplicateKeyError:
            # Another consumer created the same period first.
            logger.debug(f"Quota period for {actor_id} created concurrently")

    def increment_if_below(
        self,
        actor_id: str,
        action_kind: ActionKind | str,
        period_start: datetime,
        limit: int,
    ) -> Optional[QuotaUsage]:
        """
        Increment ``used`` only while it is below ``limit``.

        Returns:
            The counter after the increment, or None when the limit was
            already reached
        """
        query = _quota_key(actor_id, action_kind, period_start)
        query["used"] = {"$lt": limit}
        updated = self.collection.find_one_and_update(
            query,
            {"$inc": {"used": 1}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(updated)

    def increment(
        self,
        actor_id: str,
        action_kind: ActionKind | str,
        period_start: datetime,
    ) -> QuotaUsage:
        """Unbounded increment, used to keep an audit count for unlimited tiers."""
        now = utcnow()
        updated = self.collection.find_one_and_update(
            _quota_key(actor_id, action_kind, period_start),
            {
                "$inc": {"used": 1},
                "$set": {"limit": None, "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(updated)

    def decrement_if_positive(
        self,
        actor_id: str,
        action_kind: ActionKind | str,
        period_start: datetime,
    ) -> Optional[QuotaUsage]:
        """Give back one unit; never lets ``used`` drop below zero."""
        query = _quota_key(actor_id, action_kind, period_start)
        query["used"] = {"$gt": 0}
        updated = self.collection.find_one_and_update(
            query,
            {"$inc": {"used": -1}, "$set": {"updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(updated)


# Singleton instance
_quota_repository: Optional[QuotaRepository] = None


def get_quota_repository() -> QuotaRepository:
    """Get the quota repository singleton instance."""
    global _quota_repository
    if _quota_repository is None:
        _quota_repository = QuotaRepository()
    return _quota_repository
