"""
Swipe queue construction.

Builds the ordered stack of targets an actor can swipe in a session. The
queue is a read-only projection: nothing is written while building it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from pharmatch.data.models import Actor, SwipeAction, Target
from pharmatch.data.repositories.match_repository import MatchRepository
from pharmatch.utils.config import get_settings
from pharmatch.utils.constants import QueueSort, SwipeDecision, TargetType
from pharmatch.utils.logger import get_logger

from .interfaces import BlockList, OfferStore
from .score_engine import ScoreEngine
from .swipe_ledger import SwipeLedger

logger = get_logger(__name__)


@dataclass
class QueueFilters:
    """Requester-stated filters and ordering for a queue page."""

    target_type: Optional[TargetType] = None
    context_id: Optional[str] = None  # offer or mission a profile queue is built for
    max_distance_km: Optional[float] = None
    regions: list[str] = field(default_factory=list)
    contract_types: list[str] = field(default_factory=list)
    specialties: list[str] = field(default_factory=list)
    experience_ceiling: Optional[float] = None
    min_score: Optional[int] = None
    sort: QueueSort = QueueSort.SCORE
    limit: Optional[int] = None

    def __post_init__(self) -> None:
        if self.target_type is not None:
            self.target_type = TargetType(self.target_type)
        self.sort = QueueSort(self.sort)
        self.regions = [r.strip().lower() for r in self.regions if r.strip()]
        self.contract_types = [c.strip().lower() for c in self.contract_types if c.strip()]
        self.specialties = [s.strip().lower() for s in self.specialties if s.strip()]


@dataclass
class QueueEntry:
    """A target in the queue with the values it was ranked by."""

    target: Target
    score: int
    distance_km: Optional[float] = None

    @property
    def target_id(self) -> str:
        return self.target.target_id


class QueueBuilder:
    """
    Produces a filtered, deterministic queue of swipeable targets.

    Exclusions, in order: own targets, targets already matched with the
    requester, targets with a current decision (dislikes re-surface after
    the cool-down), targets of blocked actors, then the requester's filters.
    """

    def __init__(
        self,
        offers: OfferStore,
        ledger: SwipeLedger,
        matches: MatchRepository,
        blocks: BlockList,
        score_engine: Optional[ScoreEngine] = None,
        resurface_cooldown_days: Optional[float] = None,
    ):
        settings = get_settings().matching
        self.offers = offers
        self.ledger = ledger
        self.matches = matches
        self.blocks = blocks
        self.score_engine = score_engine or ScoreEngine()
        if resurface_cooldown_days is None:
            resurface_cooldown_days = settings.resurface_cooldown_days
        self.resurface_cooldown = timedelta(days=resurface_cooldown_days)

    def build_queue(
        self,
        requester: Actor,
        filters: QueueFilters,
        now: datetime,
        context: Optional[Target] = None,
    ) -> list[QueueEntry]:
        """
        Build the queue for ``requester``.

        Args:
            requester: Actor the queue is for
            filters: Target type, filters, sort key and page size
            now: Reference time for expiry and re-surfacing
            context: Offer or mission owned by the requester, required to
                rank candidate or animator profiles

        Returns:
            Queue entries sorted by the requested key, ties by target_id
        """
        if filters.target_type is None:
            raise ValueError("Queue filters need a target type")
        target_type = filters.target_type
        context_id = context.target_id if context is not None else None

        candidates = self.offers.list_targets(target_type, regions=filters.regions or None)
        decisions = self.ledger.decisions_for_actor(requester.actor_id, target_type, context_id)
        matched = self._matched_pairs(requester.actor_id)
        blocked = self.blocks.related_actor_ids(requester.actor_id)

        entries: list[QueueEntry] = []
        for target in candidates:
            if self.offers.is_expired(target, now):
                continue

            # 1. Own targets
            if target.is_owned_by(requester.actor_id):
                continue

            # 2. Already matched
            pair_context = target.target_id if target.kind.is_listing else context_id
            if (target.owner_id, pair_context) in matched:
                continue

            # 3. Already swiped
            swipe = decisions.get(target.target_id)
            if swipe is not None and not self._resurfaces(swipe, now):
                continue

            # 4. Blocked relationships
            if target.owner_id in blocked:
                continue

            # 5. Stated filters; profile distances are measured from the context listing
            breakdown = self.score_engine.breakdown(requester, target, now=now, context=context)
            entry = QueueEntry(
                target=target,
                score=breakdown.total_score,
                distance_km=breakdown.distance_km,
            )
            if self._passes_filters(entry, filters):
                entries.append(entry)

        entries = self._sort(entries, filters.sort)
        if filters.limit:
            entries = entries[: filters.limit]

        logger.debug(
            f"Built {target_type.value} queue for {requester.actor_id}: "
            f"{len(entries)} of {len(candidates)} targets"
        )
        return entries

    # -------------------------------------------------------------------------
    # Exclusion helpers
    # -------------------------------------------------------------------------

    def _matched_pairs(self, actor_id: str) -> set[tuple[str, str]]:
        """(other party, context) of every match the actor ever had."""
        return {
            (match.other_party(actor_id), match.context_target_id)
            for match in self.matches.get_for_actor(actor_id, status=None)
        }

    def _resurfaces(self, swipe: SwipeAction, now: datetime) -> bool:
        """Only a dislike older than the cool-down comes back."""
        if SwipeDecision(swipe.decision) != SwipeDecision.DISLIKE:
            return False
        return now - swipe.swiped_at >= self.resurface_cooldown

    def _passes_filters(self, entry: QueueEntry, filters: QueueFilters) -> bool:
        target = entry.target
        profile = target.profile

        if filters.max_distance_km is not None:
            if entry.distance_km is None or entry.distance_km > filters.max_distance_km:
                return False

        if filters.contract_types:
            offered = [target.contract_type] if target.contract_type else []
            if profile is not None:
                offered = profile.contract_types
            if not set(offered) & set(filters.contract_types):
                return False

        if filters.specialties:
            specialties = profile.specialties if profile is not None else target.specialties
            if not set(specialties) & set(filters.specialties):
                return False

        if filters.experience_ceiling is not None:
            years = (
                profile.experience_years
                if profile is not None
                else target.required_experience_years
            )
            if years is not None and years > filters.experience_ceiling:
                return False

        if filters.min_score is not None and entry.score < filters.min_score:
            return False

        return True

    @staticmethod
    def _sort(entries: list[QueueEntry], sort: QueueSort) -> list[QueueEntry]:
        # Stable sorts: tie-break key first, primary key last
        entries = sorted(entries, key=lambda e: e.target_id)
        if sort == QueueSort.DISTANCE:
            return sorted(
                entries,
                key=lambda e: (e.distance_km is None, e.distance_km or 0.0),
            )
        if sort == QueueSort.RECENCY:
            return sorted(entries, key=lambda e: e.target.created_at, reverse=True)
        return sorted(entries, key=lambda e: e.score, reverse=True)
