"""
Match repository for PharMatch.

Provides data access for mutual-like matches. Creation is an
insert-if-absent on the unique (actor_a, actor_b, context_target_id)
key so that concurrent detectors converge on a single document.
"""

from datetime import datetime
from typing import Any, Optional

from pymongo import ReturnDocument

from pharmatch.data.database import MATCHES
from pharmatch.data.models.base import utcnow
from pharmatch.data.models.match import Match, match_key
from pharmatch.utils.constants import MatchStatus
from pharmatch.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class MatchRepository(BaseRepository[Match]):
    """Repository for match documents."""

    @property
    def collection_name(self) -> str:
        return MATCHES

    @property
    def model_class(self) -> type[Match]:
        return Match

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_if_absent(self, match: Match) -> tuple[Match, bool]:
        """
        Insert a match unless one already exists for the pair and context.

        Returns:
            (stored match, created) where ``created`` is True only for the
            call that inserted the document

        Raises:
            DuplicateKeyError: when two upserts raced on the unique index;
                the caller retries and the retry finds the winner
        """
        document = self._to_document(match)
        document.pop("_id", None)
        now = utcnow()
        document["created_at"] = now
        document["updated_at"] = now

        key = match_key(match.actor_a, match.actor_b, match.context_target_id)
        previous = self.collection.find_one_and_update(
            key,
            {"$setOnInsert": document},
            upsert=True,
            return_document=ReturnDocument.BEFORE,
        )
        if previous is not None:
            return self._to_model(previous), False

        stored = self.collection.find_one(key)
        logger.debug(
            f"Created match {match.actor_a}<->{match.actor_b} "
            f"on {match.context_target_id}"
        )
        return self._to_model(stored), True

    # -------------------------------------------------------------------------
    # Query Operations
    # -------------------------------------------------------------------------

    def get_by_pair(
        self,
        actor_1: str,
        actor_2: str,
        context_target_id: str,
    ) -> Optional[Match]:
        """Get the match between two actors in one context, in any order."""
        return self.find_one(match_key(actor_1, actor_2, context_target_id))

    def get_for_actor(
        self,
        actor_id: str,
        status: Optional[MatchStatus] = MatchStatus.ACTIVE,
        limit: int = 0,
    ) -> list[Match]:
        """Matches an actor takes part in, newest first."""
        query: dict[str, Any] = {"$or": [{"actor_a": actor_id}, {"actor_b": actor_id}]}
        if status is not None:
            query["status"] = status.value
        return self.find(query, limit=limit, sort_by="matched_at", sort_order=-1)

    # -------------------------------------------------------------------------
    # Status Updates
    # -------------------------------------------------------------------------

    def close(
        self,
        actor_1: str,
        actor_2: str,
        context_target_id: str,
        closed_by: str,
        now: Optional[datetime] = None,
    ) -> Optional[Match]:
        """
        Close an active match.

        Returns:
            The closed match, or None when no active match exists
        """
        now = now or utcnow()
        query = match_key(actor_1, actor_2, context_target_id)
        query["status"] = MatchStatus.ACTIVE.value
        closed = self.collection.find_one_and_update(
            query,
            {
                "$set": {
                    "status": MatchStatus.CLOSED.value,
                    "closed_at": now,
                    "closed_by": closed_by,
                    "updated_at": now,
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(closed)

    def close_between(
        self,
        actor_1: str,
        actor_2: str,
        closed_by: str,
        now: Optional[datetime] = None,
    ) -> int:
        """Close every active match between two actors, across all contexts."""
        now = now or utcnow()
        actor_a, actor_b = sorted((actor_1, actor_2))
        result = self.collection.update_many(
            {
                "actor_a": actor_a,
                "actor_b": actor_b,
                "status": MatchStatus.ACTIVE.value,
            },
            {
                "$set": {
                    "status": MatchStatus.CLOSED.value,
                    "closed_at": now,
                    "closed_by": closed_by,
                    "updated_at": now,
                }
            },
        )
        if result.modified_count:
            logger.info(
                f"Closed {result.modified_count} matches between {actor_a} and {actor_b}"
            )
        return result.modified_count

    # -------------------------------------------------------------------------
    # Analytics
    # -------------------------------------------------------------------------

    def count_by_status(self, actor_id: Optional[str] = None) -> dict[str, int]:
        """Count matches grouped by status."""
        counts = {status.value: 0 for status in MatchStatus}
        query: dict[str, Any] = {}
        if actor_id is not None:
            query["$or"] = [{"actor_a": actor_id}, {"actor_b": actor_id}]
        for doc in self.collection.find(query, {"status": 1}):
            status = doc.get("status")
            if status in counts:
                counts[status] += 1
        return counts


# Singleton instance
_match_repository: Optional[MatchRepository] = None


def get_match_repository() -> MatchRepository:
    """Get the match repository singleton instance."""
    global _match_repository
    if _match_repository is None:
        _match_repository = MatchRepository()
    return _match_repository
