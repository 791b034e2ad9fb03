"""
Quota enforcement for rate-limited actions.

Counters live per (actor, action kind, period start). A new period is a
new counter, so rollover needs no background job. The gate is one
conditional increment in the store.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pharmatch.data.repositories.quota_repository import QuotaRepository
from pharmatch.utils.constants import ActionKind, AuditAction
from pharmatch.utils.logger import audit_log, get_logger

from .subscription import SubscriptionConfig, TierLimit, period_start

logger = get_logger(__name__)


@dataclass
class QuotaDecision:
    """Result of ``try_consume``; ``remaining`` and ``limit`` are None when unlimited."""

    allowed: bool
    used: int
    limit: Optional[int]
    remaining: Optional[int]


@dataclass
class QuotaStatus:
    """Read-only view of the current period."""

    action_kind: ActionKind
    period_start: datetime
    used: int
    limit: Optional[int]

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return max(0, self.limit - self.used)


class QuotaManager:
    """Tracks and enforces per-period allowances."""

    def __init__(self, quotas: QuotaRepository, subscriptions: SubscriptionConfig):
        self.quotas = quotas
        self.subscriptions = subscriptions

    def try_consume(
        self,
        actor_id: str,
        action_kind: ActionKind | str,
        now: datetime,
    ) -> QuotaDecision:
        """
        Take one unit of allowance if any is left.

        A not-allowed answer leaves the counter untouched. Unlimited tiers
        are always allowed; their counter still moves for audit.
        """
        action_kind = ActionKind(action_kind)
        tier = self.subscriptions.tier_limits(actor_id, action_kind)
        start = period_start(tier.period, now)

        if tier.is_unlimited:
            usage = self.quotas.increment(actor_id, action_kind, start)
            return QuotaDecision(allowed=True, used=usage.used, limit=None, remaining=None)

        self.quotas.ensure_period(actor_id, action_kind, start, tier.limit)
        usage = self.quotas.increment_if_below(actor_id, action_kind, start, tier.limit)
        if usage is not None:
            remaining = max(0, tier.limit - usage.used)
            audit_log(
                AuditAction.QUOTA_CONSUMED.value,
                {
                    "actor_id": actor_id,
                    "action_kind": action_kind.value,
                    "used": usage.used,
                    "limit": tier.limit,
                },
                audit_type="QUOTA",
            )
            return QuotaDecision(allowed=True, used=usage.used, limit=tier.limit, remaining=remaining)

        current = self.quotas.get(actor_id, action_kind, start)
        used = current.used if current is not None else 0
        logger.info(f"{action_kind.value} quota exhausted for {actor_id} ({used}/{tier.limit})")
        return QuotaDecision(allowed=False, used=used, limit=tier.limit, remaining=0)

    def release(
        self,
        actor_id: str,
        action_kind: ActionKind | str,
        now: datetime,
    ) -> None:
        """Give back one unit consumed in the period containing ``now``."""
        action_kind = ActionKind(action_kind)
        tier = self.subscriptions.tier_limits(actor_id, action_kind)
        start = period_start(tier.period, now)
        usage = self.quotas.decrement_if_positive(actor_id, action_kind, start)
        if usage is not None:
            audit_log(
                AuditAction.QUOTA_RELEASED.value,
                {"actor_id": actor_id, "action_kind": action_kind.value, "used": usage.used},
                audit_type="QUOTA",
            )

    def get_quota(
        self,
        actor_id: str,
        action_kind: ActionKind | str,
        now: datetime,
    ) -> QuotaStatus:
        """Usage of the current period. Never creates a counter."""
        action_kind = ActionKind(action_kind)
        tier: TierLimit = self.subscriptions.tier_limits(actor_id, action_kind)
        start = period_start(tier.period, now)
        usage = self.quotas.get(actor_id, action_kind, start)
        return QuotaStatus(
            action_kind=action_kind,
            period_start=start,
            used=usage.used if usage is not None else 0,
            limit=tier.limit,
        )
