"""
Mutual-like detection.

After a swipe is recorded, the detector looks up the counter-party's
reciprocal decision in the same context. When both sides hold a like,
the match is created with one insert-if-absent against the unique
(actor_a, actor_b, context) index, so two detectors racing on the same
pair both end up returning the single stored match.
"""

from datetime import datetime
from typing import Optional

from pymongo.errors import DuplicateKeyError

from pharmatch.data.models import Actor, Match, Target
from pharmatch.data.repositories.match_repository import MatchRepository
from pharmatch.utils.config import get_settings
from pharmatch.utils.constants import (
    PROFILE_CONTEXT_TYPES,
    AuditAction,
    MatchStatus,
    TargetType,
)
from pharmatch.utils.logger import audit_log, get_logger

from .exceptions import MatchNotFound, StorageError
from .interfaces import NotificationService, OfferStore, ProfileStore
from .score_engine import ScoreEngine
from .swipe_ledger import SwipeLedger

logger = get_logger(__name__)

# (actor_id, target_type, target_id, context_id)
SwipeKey = tuple[str, TargetType, str, str]


class MatchDetector:
    """Creates exactly one match per mutual like."""

    def __init__(
        self,
        ledger: SwipeLedger,
        matches: MatchRepository,
        offers: OfferStore,
        profiles: ProfileStore,
        notifier: Optional[NotificationService] = None,
        score_engine: Optional[ScoreEngine] = None,
        retries: Optional[int] = None,
    ):
        self.ledger = ledger
        self.matches = matches
        self.offers = offers
        self.profiles = profiles
        self.notifier = notifier
        self.score_engine = score_engine or ScoreEngine()
        if retries is None:
            retries = get_settings().matching.match_create_retries
        self.retries = retries

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def evaluate(
        self,
        actor_id: str,
        target_type: TargetType | str,
        target_id: str,
        now: datetime,
        context_id: Optional[str] = None,
    ) -> Optional[Match]:
        """
        Create or return the match implied by the actor's swipe.

        Returns:
            The active match when both sides hold a like-class decision,
            None otherwise (including when the pair's match was closed)
        """
        target_type = TargetType(target_type)
        target = self.offers.get(target_type, target_id)
        if target is None:
            return None
        context = self._context_of(target, context_id)
        if context is None:
            return None

        if not self.ledger.holds_like(actor_id, target_type, target_id, context.target_id):
            return None

        counterparty, reciprocal = self.reciprocal_key(actor_id, target, context)
        if counterparty == actor_id:
            return None
        if not self.ledger.holds_like(*reciprocal):
            return None

        match = Match(
            actor_a=actor_id,
            actor_b=counterparty,
            target_type=context.kind,
            context_target_id=context.target_id,
            score=self._score(actor_id, target, context, now),
            matched_at=now,
        )
        stored, created = self._create_if_absent(match)

        if not stored.is_active:
            logger.debug(f"Match {stored.match_id} is closed and stays closed")
            return None

        if created:
            audit_log(
                AuditAction.MATCH_CREATED.value,
                {
                    "match_id": stored.match_id,
                    "actor_a": stored.actor_a,
                    "actor_b": stored.actor_b,
                    "context_target_id": stored.context_target_id,
                    "score": stored.score,
                },
                audit_type="MATCH",
            )
            self._notify(stored)
        return stored

    @staticmethod
    def reciprocal_key(actor_id: str, target: Target, context: Target) -> tuple[str, SwipeKey]:
        """
        Counter-party of a swipe and the ledger key of its answering swipe.

        An offer or mission is answered by its owner swiping the actor's
        profile in that listing's context; a profile is answered by the
        profile's actor swiping the context listing.
        """
        if target.kind.is_listing:
            return target.owner_id, (
                target.owner_id,
                target.kind.complementary,
                actor_id,
                target.target_id,
            )
        return target.target_id, (
            target.target_id,
            context.kind,
            context.target_id,
            context.target_id,
        )

    def _context_of(self, target: Target, context_id: Optional[str]) -> Optional[Target]:
        if target.kind.is_listing:
            return target
        if context_id is None:
            return None
        for context_type in PROFILE_CONTEXT_TYPES[target.kind]:
            context = self.offers.get(context_type, context_id)
            if context is not None:
                return context
        return None

    def _score(self, actor_id: str, target: Target, context: Target, now: datetime) -> int:
        """Score the pair from the seeker's side so both directions agree."""
        seeker: Optional[Actor]
        if target.kind.is_listing:
            seeker = self.profiles.get_actor(actor_id)
        else:
            seeker = target.profile or self.profiles.get_actor(target.target_id)
        if seeker is None:
            logger.warning(f"No seeker profile for match on {context.target_id}, scoring 0")
            return 0
        return self.score_engine.breakdown_pair(seeker, context, now=now).total_score

    def _create_if_absent(self, match: Match) -> tuple[Match, bool]:
        for attempt in range(1, self.retries + 1):
            try:
                return self.matches.create_if_absent(match)
            except DuplicateKeyError:
                logger.debug(
                    f"Match insert conflict on {match.actor_a}/{match.actor_b}/"
                    f"{match.context_target_id}, attempt {attempt}"
                )

        existing = self.matches.get_by_pair(match.actor_a, match.actor_b, match.context_target_id)
        if existing is None:
            raise StorageError(
                "Match creation kept conflicting without a stored winner",
                details={"actor_a": match.actor_a, "actor_b": match.actor_b},
            )
        return existing, False

    def _notify(self, match: Match) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.on_match_created(match)
        except Exception as e:
            # Delivery is fire-and-forget; the match stays
            logger.error(f"Match notification failed for {match.match_id}: {e}")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close_match(self, match_id: str, actor_id: str, now: datetime) -> Match:
        """
        Withdraw from a match as one of its participants.

        Raises:
            MatchNotFound: unknown id, or the actor is not a participant
        """
        match = self.matches.get_by_id(match_id)
        if match is None or not match.involves(actor_id):
            raise MatchNotFound(
                f"Match {match_id} not found for actor {actor_id}",
                details={"match_id": match_id, "actor_id": actor_id},
            )
        if not match.is_active:
            return match

        closed = self.matches.close(
            match.actor_a, match.actor_b, match.context_target_id, closed_by=actor_id, now=now
        )
        if closed is None:
            # Closed concurrently by the other participant
            return self.matches.get_by_id(match_id)

        audit_log(
            AuditAction.MATCH_CLOSED.value,
            {"match_id": match_id, "closed_by": actor_id, "reason": "withdrawn"},
            audit_type="MATCH",
        )
        return closed

    def close_between(self, actor_1: str, actor_2: str, closed_by: str, now: datetime) -> int:
        """Close every active match between two actors."""
        count = self.matches.close_between(actor_1, actor_2, closed_by=closed_by, now=now)
        if count:
            audit_log(
                AuditAction.MATCH_CLOSED.value,
                {"actors": sorted((actor_1, actor_2)), "closed_by": closed_by, "count": count},
                audit_type="MATCH",
            )
        return count

    def matches_for_actor(
        self,
        actor_id: str,
        status: Optional[MatchStatus] = MatchStatus.ACTIVE,
    ) -> list[Match]:
        return self.matches.get_for_actor(actor_id, status=status)
