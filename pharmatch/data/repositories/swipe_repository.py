"""
Swipe ledger repository for PharMatch.

One document per (actor_id, target_type, target_id, context_id); a
re-swipe overwrites the decision in place.
"""

from typing import Any, Optional

from pymongo import ReturnDocument

from pharmatch.data.database import SWIPES
from pharmatch.data.models.swipe import SwipeAction, swipe_key
from pharmatch.utils.constants import LIKE_CLASS_DECISIONS, SwipeDecision, TargetType
from pharmatch.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class SwipeRepository(BaseRepository[SwipeAction]):
    """Repository for swipe ledger documents."""

    @property
    def collection_name(self) -> str:
        return SWIPES

    @property
    def model_class(self) -> type[SwipeAction]:
        return SwipeAction

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def upsert_decision(self, swipe: SwipeAction) -> Optional[SwipeAction]:
        """
        Insert or overwrite the decision for the swipe's key in one operation.

        Returns:
            The row as it was before the write, or None if it was inserted

        Raises:
            DuplicateKeyError: when a concurrent first insert of the same
                key won the race; retrying resolves to an update
        """
        update = {
            "$set": {
                "context_type": TargetType(swipe.context_type).value,
                "decision": SwipeDecision(swipe.decision).value,
                "swiped_at": swipe.swiped_at,
                "updated_at": swipe.swiped_at,
            },
            "$setOnInsert": {"created_at": swipe.swiped_at},
        }
        previous = self.collection.find_one_and_update(
            swipe.key,
            update,
            upsert=True,
            return_document=ReturnDocument.BEFORE,
        )
        return self._to_model(previous)

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def get_decision(
        self,
        actor_id: str,
        target_type: TargetType | str,
        target_id: str,
        context_id: str,
    ) -> Optional[SwipeAction]:
        """Current ledger row for a key, if any."""
        return self.find_one(swipe_key(actor_id, target_type, target_id, context_id))

    def has_like(
        self,
        actor_id: str,
        target_type: TargetType | str,
        target_id: str,
        context_id: str,
    ) -> bool:
        """Check whether the current decision for a key is like-class."""
        query: dict[str, Any] = swipe_key(actor_id, target_type, target_id, context_id)
        query["decision"] = {"$in": list(LIKE_CLASS_DECISIONS)}
        return self.exists(query)

    def find_for_actor(
        self,
        actor_id: str,
        target_type: Optional[TargetType | str] = None,
        context_id: Optional[str] = None,
    ) -> list[SwipeAction]:
        """All current decisions of an actor, optionally narrowed."""
        query: dict[str, Any] = {"actor_id": actor_id}
        if target_type is not None:
            query["target_type"] = TargetType(target_type).value
        if context_id is not None:
            query["context_id"] = context_id
        return self.find(query)


# Singleton instance
_swipe_repository: Optional[SwipeRepository] = None


def get_swipe_repository() -> SwipeRepository:
    """Get the swipe repository singleton instance."""
    global _swipe_repository
    if _swipe_repository is None:
        _swipe_repository = SwipeRepository()
    return _swipe_repository
