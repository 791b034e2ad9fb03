"""
Swipe ledger models for PharMatch.
"""

from datetime import datetime

from pydantic import Field

from pharmatch.utils.constants import SwipeDecision, TargetType

from .base import BaseDocument, utcnow


class SwipeAction(BaseDocument):
    """
    Current decision of one actor toward one target, in one context.

    Unique per (actor_id, target_type, target_id, context_id). For offers
    and missions the context is the target itself; profile targets are
    swiped for a given offer or mission.
    """

    actor_id: str
    target_type: TargetType
    target_id: str
    context_type: TargetType
    context_id: str
    decision: SwipeDecision
    swiped_at: datetime = Field(default_factory=utcnow)

    @property
    def is_like_class(self) -> bool:
        return SwipeDecision(self.decision).is_like_class

    @property
    def key(self) -> dict[str, str]:
        """Upsert key of this ledger row."""
        return swipe_key(self.actor_id, self.target_type, self.target_id, self.context_id)


def swipe_key(
    actor_id: str,
    target_type: TargetType | str,
    target_id: str,
    context_id: str,
) -> dict[str, str]:
    """Build the unique ledger key for a swipe."""
    return {
        "actor_id": actor_id,
        "target_type": TargetType(target_type).value,
        "target_id": target_id,
        "context_id": context_id,
    }
