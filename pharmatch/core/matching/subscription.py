"""
Subscription limits for rate-limited actions.

Resolves the allowance of an actor from its role and tier. Unknown tiers
fall back to the free allowance of the role.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pharmatch.data.models import Actor
from pharmatch.utils.constants import (
    QUOTA_PERIODS,
    SUPERLIKE_DAILY_LIMITS,
    ActionKind,
    ActorRole,
    QuotaPeriod,
    SubscriptionTier,
)
from pharmatch.utils.logger import get_logger

from .exceptions import InvalidSwipe
from .interfaces import ProfileStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class TierLimit:
    """Allowance for one action kind; ``limit`` None means unlimited."""

    limit: Optional[int]
    period: QuotaPeriod

    @property
    def is_unlimited(self) -> bool:
        return self.limit is None


def period_start(period: QuotaPeriod, now: datetime) -> datetime:
    """Start of the period containing ``now`` (UTC day or calendar month)."""
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == QuotaPeriod.MONTH:
        return day_start.replace(day=1)
    return day_start


class SubscriptionConfig:
    """Maps (role, tier, action kind) to a TierLimit."""

    def __init__(
        self,
        profiles: ProfileStore,
        limits: Optional[dict[ActorRole, dict[SubscriptionTier, Optional[int]]]] = None,
    ):
        self.profiles = profiles
        self.limits = limits if limits is not None else SUPERLIKE_DAILY_LIMITS

    def limit_for(
        self,
        role: ActorRole | str,
        tier: SubscriptionTier | str,
        action_kind: ActionKind | str,
    ) -> TierLimit:
        """Pure lookup of the allowance for a role and tier."""
        action_kind = ActionKind(action_kind)
        period = QUOTA_PERIODS[action_kind]
        role_limits = self.limits.get(ActorRole(role), {})
        tier = SubscriptionTier(tier)
        if tier in role_limits:
            return TierLimit(limit=role_limits[tier], period=period)

        logger.debug(f"No {action_kind.value} limit for {role}/{tier.value}, using free tier")
        return TierLimit(limit=role_limits.get(SubscriptionTier.FREE, 0), period=period)

    def tier_limits(self, actor_id: str, action_kind: ActionKind | str) -> TierLimit:
        """Allowance of an actor, looked up through the profile store."""
        actor = self.profiles.get_actor(actor_id)
        if actor is None:
            raise InvalidSwipe(f"Unknown actor: {actor_id}", details={"actor_id": actor_id})
        return self.limits_for_actor(actor, action_kind)

    def limits_for_actor(self, actor: Actor, action_kind: ActionKind | str) -> TierLimit:
        return self.limit_for(actor.role, actor.tier, action_kind)
