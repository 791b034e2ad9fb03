"""
Swipe matching engine.

Single entry point for queue building, swipes, quotas and match
lifecycle. The engine holds no matching state of its own: every call
takes the acting actor explicitly and all coordination happens in the
store through unique keys and single-document atomic updates.
"""

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from pharmatch.data.models import Actor, Match, as_naive_utc, utcnow
from pharmatch.data.repositories import (
    MatchRepository,
    QuotaRepository,
    SwipeRepository,
    get_actor_repository,
    get_block_repository,
    get_match_repository,
    get_quota_repository,
    get_swipe_repository,
    get_target_repository,
)
from pharmatch.utils.config import MatchingSettings, get_settings
from pharmatch.utils.constants import (
    ActionKind,
    AuditAction,
    MatchStatus,
    SuperlikeFallback,
    SwipeDecision,
    TargetType,
)
from pharmatch.utils.logger import audit_log, get_logger

from .exceptions import Blocked, InvalidSwipe, QuotaExceeded, translate_storage_errors
from .interfaces import BlockList, NotificationService, OfferStore, ProfileStore
from .match_detector import MatchDetector
from .queue_builder import QueueBuilder, QueueEntry, QueueFilters
from .quota_manager import QuotaManager, QuotaStatus
from .score_engine import ScoreEngine
from .subscription import SubscriptionConfig
from .swipe_ledger import SwipeLedger

logger = get_logger(__name__)


@dataclass
class SwipeResult:
    """Outcome of a swipe as seen by the caller."""

    matched: bool
    decision: SwipeDecision
    match: Optional[Match] = None
    quota_remaining: Optional[int] = None
    previous_decision: Optional[SwipeDecision] = None
    requested: Optional[SwipeDecision] = None

    @property
    def downgraded(self) -> bool:
        """A superlike was recorded as a plain like for lack of quota."""
        return self.decision == SwipeDecision.LIKE and self.requested == SwipeDecision.SUPERLIKE


class MatchingEngine:
    """
    Facade over the matching components.

    Swipe pipeline:
    - Resolve the actor, the target and its context
    - Reject blocked relationships before any write
    - Consume superlike quota (reject or downgrade when exhausted)
    - Upsert the decision in the ledger
    - Detect and create the mutual match
    """

    def __init__(
        self,
        profiles: Optional[ProfileStore] = None,
        offers: Optional[OfferStore] = None,
        swipes: Optional[SwipeRepository] = None,
        matches: Optional[MatchRepository] = None,
        quotas: Optional[QuotaRepository] = None,
        blocks: Optional[BlockList] = None,
        notifier: Optional[NotificationService] = None,
        settings: Optional[MatchingSettings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the engine.

        Collaborators default to the Mongo-backed repository singletons.

        Args:
            profiles: Actor lookup
            offers: Target lookup
            swipes: Swipe ledger storage
            matches: Match storage
            quotas: Quota counter storage
            blocks: Block list
            notifier: Receives newly created matches
            settings: Matching settings (defaults to the global settings)
            clock: Source of the current UTC time
        """
        self.settings = settings or get_settings().matching
        self.clock = clock

        self.profiles: ProfileStore = profiles or get_actor_repository()
        self.offers: OfferStore = offers or get_target_repository()
        self.blocks: BlockList = blocks or get_block_repository()
        match_repository = matches or get_match_repository()

        self.score_engine = ScoreEngine(
            weights=self.settings.weights,
            max_radius_km=self.settings.max_radius_km,
        )
        self.ledger = SwipeLedger(
            swipes or get_swipe_repository(),
            self.offers,
            retries=self.settings.ledger_retries,
        )
        self.subscriptions = SubscriptionConfig(self.profiles)
        self.quota_manager = QuotaManager(quotas or get_quota_repository(), self.subscriptions)
        self.detector = MatchDetector(
            self.ledger,
            match_repository,
            self.offers,
            self.profiles,
            notifier=notifier,
            score_engine=self.score_engine,
            retries=self.settings.match_create_retries,
        )
        self.queue_builder = QueueBuilder(
            self.offers,
            self.ledger,
            match_repository,
            self.blocks,
            score_engine=self.score_engine,
            resurface_cooldown_days=self.settings.resurface_cooldown_days,
        )

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def get_queue(
        self,
        actor_id: str,
        target_kind: TargetType | str,
        filters: Optional[QueueFilters] = None,
    ) -> list[QueueEntry]:
        """
        Build the swipe queue of an actor for one target kind.

        Candidate and animator queues are built for one of the actor's
        offers or missions, given as ``filters.context_id``.
        """
        target_kind = TargetType(target_kind)
        filters = replace(filters or QueueFilters(), target_type=target_kind)
        if filters.limit is None:
            filters.limit = self.settings.default_queue_limit

        with translate_storage_errors("get_queue"):
            now = self._now()
            requester = self._actor(actor_id)
            context = None
            if target_kind.is_profile:
                if filters.context_id is None:
                    raise InvalidSwipe(
                        f"A {target_kind.value} queue needs an offer or mission context",
                        details={"actor_id": actor_id},
                    )
                context = self.ledger.resolve_context(actor_id, target_kind, filters.context_id, now)
            return self.queue_builder.build_queue(requester, filters, now, context=context)

    # -------------------------------------------------------------------------
    # Swipe
    # -------------------------------------------------------------------------

    def swipe(
        self,
        actor_id: str,
        target_kind: TargetType | str,
        target_id: str,
        decision: SwipeDecision | str,
        context_id: Optional[str] = None,
    ) -> SwipeResult:
        """
        Record a swipe and report whether it completed a match.

        Raises:
            TargetUnavailable: target or context missing, expired or withdrawn
            Blocked: the actor and the target's owner are in a block relationship
            QuotaExceeded: superlike without allowance under the reject policy
            InvalidSwipe: unknown actor, own target, or a bad context
            StorageError: the store failed
        """
        target_kind = TargetType(target_kind)
        requested = SwipeDecision(decision)

        with translate_storage_errors("swipe"):
            now = self._now()
            self._actor(actor_id)
            resolved = self.ledger.resolve(actor_id, target_kind, target_id, now, context_id)

            if self.blocks.are_blocked(actor_id, resolved.target.owner_id):
                raise Blocked(
                    "Swipe rejected: block relationship with the target's owner",
                    details={"actor_id": actor_id, "target_id": target_id},
                )

            decision, consumed, quota_remaining = self._gate_superlike(
                actor_id, target_kind, target_id, resolved.context_id, requested, now
            )

            try:
                record = self.ledger.record(
                    actor_id, target_kind, target_id, decision, now, context_id=resolved.context_id
                )
            except Exception:
                if consumed:
                    self.quota_manager.release(actor_id, ActionKind.SUPERLIKE, now)
                raise

            if consumed and record.previous_decision == SwipeDecision.SUPERLIKE:
                # A concurrent replay already paid for this superlike
                self.quota_manager.release(actor_id, ActionKind.SUPERLIKE, now)
                if quota_remaining is not None:
                    quota_remaining += 1

            match = self.detector.evaluate(
                actor_id, target_kind, target_id, now, context_id=resolved.context_id
            )

        audit_log(
            AuditAction.SWIPE_RECORDED.value,
            {
                "actor_id": actor_id,
                "target_type": target_kind.value,
                "target_id": target_id,
                "context_id": resolved.context_id,
                "decision": decision.value,
                "previous_decision": (
                    record.previous_decision.value if record.previous_decision else None
                ),
                "matched": match is not None,
            },
            audit_type="SWIPE",
        )
        return SwipeResult(
            matched=match is not None,
            decision=decision,
            match=match,
            quota_remaining=quota_remaining,
            previous_decision=record.previous_decision,
            requested=requested,
        )

    def _gate_superlike(
        self,
        actor_id: str,
        target_kind: TargetType,
        target_id: str,
        context_id: str,
        decision: SwipeDecision,
        now: datetime,
    ) -> tuple[SwipeDecision, bool, Optional[int]]:
        """
        Apply the superlike quota ahead of the ledger write.

        Returns:
            (decision to record, whether a unit was consumed, remaining allowance)
        """
        if decision != SwipeDecision.SUPERLIKE:
            return decision, False, None

        if self._holds_superlike(actor_id, target_kind, target_id, context_id):
            # Replay of a superlike already paid for
            status = self.quota_manager.get_quota(actor_id, ActionKind.SUPERLIKE, now)
            return decision, False, status.remaining

        outcome = self.quota_manager.try_consume(actor_id, ActionKind.SUPERLIKE, now)
        if outcome.allowed:
            return decision, True, outcome.remaining

        if self._holds_superlike(actor_id, target_kind, target_id, context_id):
            # A concurrent replay spent the last unit on this same key
            return decision, False, outcome.remaining

        details = {
            "actor_id": actor_id,
            "target_id": target_id,
            "used": outcome.used,
            "limit": outcome.limit,
        }
        if SuperlikeFallback(self.settings.superlike_fallback) == SuperlikeFallback.DOWNGRADE:
            audit_log(AuditAction.SUPERLIKE_DOWNGRADED.value, details, audit_type="QUOTA")
            return SwipeDecision.LIKE, False, 0

        audit_log(AuditAction.QUOTA_REJECTED.value, details, audit_type="QUOTA")
        raise QuotaExceeded(
            "Superlike quota exhausted for the current period",
            limit=outcome.limit,
            used=outcome.used,
            details=details,
        )

    def _holds_superlike(
        self, actor_id: str, target_kind: TargetType, target_id: str, context_id: str
    ) -> bool:
        current = self.ledger.current_decision(actor_id, target_kind, target_id, context_id)
        return current is not None and SwipeDecision(current.decision) == SwipeDecision.SUPERLIKE

    # -------------------------------------------------------------------------
    # Quota
    # -------------------------------------------------------------------------

    def get_quota(
        self,
        actor_id: str,
        action_kind: ActionKind | str = ActionKind.SUPERLIKE,
    ) -> QuotaStatus:
        """Usage, limit and remaining allowance of the current period."""
        with translate_storage_errors("get_quota"):
            return self.quota_manager.get_quota(actor_id, action_kind, self._now())

    # -------------------------------------------------------------------------
    # Matches
    # -------------------------------------------------------------------------

    def get_matches(
        self,
        actor_id: str,
        status: Optional[MatchStatus] = MatchStatus.ACTIVE,
    ) -> list[Match]:
        """Matches of an actor, newest first."""
        with translate_storage_errors("get_matches"):
            return self.detector.matches_for_actor(actor_id, status=status)

    def withdraw_match(self, actor_id: str, match_id: str) -> Match:
        """Close a match on behalf of one of its participants."""
        with translate_storage_errors("withdraw_match"):
            return self.detector.close_match(match_id, actor_id, self._now())

    def on_block(self, blocker_id: str, blocked_id: str) -> int:
        """
        Close every active match between two actors after a block.

        Returns:
            Number of matches closed
        """
        with translate_storage_errors("on_block"):
            closed = self.detector.close_between(
                blocker_id, blocked_id, closed_by=blocker_id, now=self._now()
            )
        if closed:
            logger.info(f"Block by {blocker_id} closed {closed} matches with {blocked_id}")
        return closed

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        """Current time from the injected clock, as naive UTC like stored values."""
        return as_naive_utc(self.clock())

    def _actor(self, actor_id: str) -> Actor:
        actor = self.profiles.get_actor(actor_id)
        if actor is None:
            raise InvalidSwipe(f"Unknown actor: {actor_id}", details={"actor_id": actor_id})
        return actor


# Singleton instance
_matching_engine: Optional[MatchingEngine] = None


def get_matching_engine() -> MatchingEngine:
    """Get the matching engine singleton instance."""
    global _matching_engine
    if _matching_engine is None:
        from pharmatch.services.notification_service import get_notification_service

        _matching_engine = MatchingEngine(notifier=get_notification_service())
    return _matching_engine
