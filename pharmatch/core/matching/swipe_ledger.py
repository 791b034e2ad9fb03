"""
Swipe ledger.

Records the current decision of an actor toward a target as a single
atomic upsert on the (actor, target type, target, context) key. Replays
are harmless: the row is overwritten and the previous decision returned.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pymongo.errors import DuplicateKeyError

from pharmatch.data.models import SwipeAction, Target
from pharmatch.data.repositories.swipe_repository import SwipeRepository
from pharmatch.utils.config import get_settings
from pharmatch.utils.constants import PROFILE_CONTEXT_TYPES, SwipeDecision, TargetType
from pharmatch.utils.logger import get_logger

from .exceptions import InvalidSwipe, StorageError, TargetUnavailable
from .interfaces import OfferStore

logger = get_logger(__name__)


@dataclass
class RecordResult:
    """Outcome of recording a swipe."""

    accepted: bool
    swipe: SwipeAction
    previous_decision: Optional[SwipeDecision] = None


@dataclass
class ResolvedTarget:
    """A validated target and the listing it is swiped in the context of."""

    target: Target
    context: Target

    @property
    def context_id(self) -> str:
        return self.context.target_id


class SwipeLedger:
    """Idempotent store of current swipe decisions."""

    def __init__(
        self,
        swipes: SwipeRepository,
        offers: OfferStore,
        retries: Optional[int] = None,
    ):
        self.swipes = swipes
        self.offers = offers
        self.retries = retries if retries is not None else get_settings().matching.ledger_retries

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def resolve(
        self,
        actor_id: str,
        target_type: TargetType | str,
        target_id: str,
        now: datetime,
        context_id: Optional[str] = None,
    ) -> ResolvedTarget:
        """
        Load and validate a target and its context.

        Offers and missions are their own context. Candidate and animator
        profiles must be swiped for a listing of a matching kind that the
        actor owns.

        Raises:
            TargetUnavailable: target or context missing, expired or withdrawn
            InvalidSwipe: own target, or a missing or foreign context
        """
        target_type = TargetType(target_type)
        target = self._eligible(target_type, target_id, now)

        if target.is_owned_by(actor_id):
            raise InvalidSwipe(
                "Actors cannot swipe their own targets",
                details={"actor_id": actor_id, "target_id": target_id},
            )

        if target_type.is_listing:
            if context_id is not None and context_id != target_id:
                raise InvalidSwipe(
                    "Offers and missions are swiped in their own context",
                    details={"target_id": target_id, "context_id": context_id},
                )
            return ResolvedTarget(target=target, context=target)

        if context_id is None:
            raise InvalidSwipe(
                f"A {target_type.value} profile must be swiped for an offer or mission",
                details={"target_id": target_id},
            )

        context = self.resolve_context(actor_id, target_type, context_id, now)
        return ResolvedTarget(target=target, context=context)

    def resolve_context(
        self,
        actor_id: str,
        profile_type: TargetType | str,
        context_id: str,
        now: datetime,
    ) -> Target:
        """Load the actor's own listing that profiles of this kind are reviewed for."""
        context = self._find_context(TargetType(profile_type), context_id, now)
        if not context.is_owned_by(actor_id):
            raise InvalidSwipe(
                "Context listing is not owned by the swiping actor",
                details={"actor_id": actor_id, "context_id": context_id},
            )
        return context

    def _eligible(self, target_type: TargetType, target_id: str, now: datetime) -> Target:
        target = self.offers.get(target_type, target_id)
        if target is None:
            raise TargetUnavailable(
                f"{target_type.value} {target_id} not found",
                details={"target_type": target_type.value, "target_id": target_id},
            )
        if self.offers.is_expired(target, now):
            raise TargetUnavailable(
                f"{target_type.value} {target_id} is no longer available",
                details={"target_type": target_type.value, "target_id": target_id},
            )
        return target

    def _find_context(self, profile_type: TargetType, context_id: str, now: datetime) -> Target:
        """Find the listing a profile is swiped for, among the allowed kinds."""
        for context_type in PROFILE_CONTEXT_TYPES[profile_type]:
            context = self.offers.get(context_type, context_id)
            if context is not None:
                return self._eligible(context_type, context_id, now)
        raise TargetUnavailable(
            f"Context {context_id} not found",
            details={"context_id": context_id},
        )

    # -------------------------------------------------------------------------
    # Write
    # -------------------------------------------------------------------------

    def record(
        self,
        actor_id: str,
        target_type: TargetType | str,
        target_id: str,
        decision: SwipeDecision | str,
        now: datetime,
        context_id: Optional[str] = None,
    ) -> RecordResult:
        """
        Validate the target and upsert the decision.

        Returns:
            RecordResult carrying the stored row and the previous decision
        """
        resolved = self.resolve(actor_id, target_type, target_id, now, context_id)
        swipe = SwipeAction(
            actor_id=actor_id,
            target_type=TargetType(target_type),
            target_id=target_id,
            context_type=resolved.context.kind,
            context_id=resolved.context_id,
            decision=SwipeDecision(decision),
            swiped_at=now,
        )

        previous = self._upsert(swipe)
        previous_decision = SwipeDecision(previous.decision) if previous is not None else None
        logger.debug(
            f"Recorded {swipe.decision} by {actor_id} on {swipe.target_type}/{target_id} "
            f"(context {swipe.context_id}, previous {previous_decision})"
        )
        return RecordResult(accepted=True, swipe=swipe, previous_decision=previous_decision)

    def _upsert(self, swipe: SwipeAction) -> Optional[SwipeAction]:
        # Two first inserts of the same key race on the unique index; the
        # loser's retry finds the row and becomes an update.
        for attempt in range(1, self.retries + 1):
            try:
                return self.swipes.upsert_decision(swipe)
            except DuplicateKeyError:
                logger.debug(f"Swipe upsert conflict on {swipe.key}, attempt {attempt}")
        raise StorageError(
            "Swipe upsert kept conflicting",
            details={"key": swipe.key, "attempts": self.retries},
        )

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def current_decision(
        self,
        actor_id: str,
        target_type: TargetType | str,
        target_id: str,
        context_id: str,
    ) -> Optional[SwipeAction]:
        """Current ledger row for a key."""
        return self.swipes.get_decision(actor_id, target_type, target_id, context_id)

    def holds_like(
        self,
        actor_id: str,
        target_type: TargetType | str,
        target_id: str,
        context_id: str,
    ) -> bool:
        return self.swipes.has_like(actor_id, target_type, target_id, context_id)

    def decisions_for_actor(
        self,
        actor_id: str,
        target_type: TargetType | str,
        context_id: Optional[str] = None,
    ) -> dict[str, SwipeAction]:
        """Current decisions of an actor on one target kind, by target_id."""
        return {
            swipe.target_id: swipe
            for swipe in self.swipes.find_for_actor(actor_id, target_type, context_id)
        }
