"""
Application-wide constants for PharMatch.

This module contains all constant values used throughout the matching engine.
Modify these values to customize behavior without changing code logic.
"""

from enum import Enum
from typing import Final, Optional


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "pharmatch"
APP_DISPLAY_NAME: Final[str] = "PharMatch Matching Engine"
VERSION: Final[str] = "0.1.0"


# =============================================================================
# Scoring Constants
# =============================================================================

# Default weights for compatibility scoring
DEFAULT_SCORING_WEIGHTS: Final[dict[str, float]] = {
    "distance": 0.25,
    "contract_type": 0.15,
    "diploma": 0.15,
    "experience": 0.15,
    "specialties": 0.10,
    "mobility": 0.10,
    "availability": 0.10,
}

# Diploma levels (ordered by level)
DIPLOMA_LEVELS: Final[dict[str, int]] = {
    "none": 0,
    "cap": 1,
    "bac": 2,
    "bp": 3,
    "deust": 4,
    "licence": 5,
    "master": 6,
    "doctorat": 7,
}


# =============================================================================
# Enums
# =============================================================================


class ActorRole(str, Enum):
    """Role an actor plays on the marketplace."""

    CANDIDATE = "candidate"
    STUDENT = "student"
    RECRUITER = "recruiter"
    LABORATORY = "laboratory"
    ANIMATOR = "animator"


class SubscriptionTier(str, Enum):
    """Subscription tier of an actor."""

    FREE = "free"
    STARTER = "starter"
    PRO = "pro"
    BUSINESS = "business"
    PREMIUM = "premium"


class TargetType(str, Enum):
    """Kinds of swipeable entities."""

    JOB_OFFER = "job_offer"
    INTERNSHIP_OFFER = "internship_offer"
    CANDIDATE = "candidate"
    ANIMATOR = "animator"
    MISSION = "mission"

    @property
    def is_listing(self) -> bool:
        """Offers and missions are published by an owner; profiles are not."""
        return self in LISTING_TYPES

    @property
    def is_profile(self) -> bool:
        return not self.is_listing

    @property
    def complementary(self) -> Optional["TargetType"]:
        """Target type the counter-party swipes to answer a listing."""
        if self in (TargetType.JOB_OFFER, TargetType.INTERNSHIP_OFFER):
            return TargetType.CANDIDATE
        if self == TargetType.MISSION:
            return TargetType.ANIMATOR
        return None


LISTING_TYPES: Final[frozenset[TargetType]] = frozenset(
    {TargetType.JOB_OFFER, TargetType.INTERNSHIP_OFFER, TargetType.MISSION}
)

# Context kinds accepted for profile targets
PROFILE_CONTEXT_TYPES: Final[dict[TargetType, tuple[TargetType, ...]]] = {
    TargetType.CANDIDATE: (TargetType.JOB_OFFER, TargetType.INTERNSHIP_OFFER),
    TargetType.ANIMATOR: (TargetType.MISSION,),
}


class TargetStatus(str, Enum):
    """Publication status of a target."""

    ACTIVE = "active"
    OPEN = "open"
    CLOSED = "closed"
    EXPIRED = "expired"
    WITHDRAWN = "withdrawn"
    FILLED = "filled"


ELIGIBLE_TARGET_STATUSES: Final[frozenset[TargetStatus]] = frozenset(
    {TargetStatus.ACTIVE, TargetStatus.OPEN}
)


class SwipeDecision(str, Enum):
    """Decision recorded by a swipe."""

    LIKE = "like"
    DISLIKE = "dislike"
    SUPERLIKE = "superlike"

    @property
    def is_like_class(self) -> bool:
        return self in (SwipeDecision.LIKE, SwipeDecision.SUPERLIKE)


LIKE_CLASS_DECISIONS: Final[tuple[str, ...]] = (
    SwipeDecision.LIKE.value,
    SwipeDecision.SUPERLIKE.value,
)


class MatchStatus(str, Enum):
    """Lifecycle status of a match."""

    ACTIVE = "active"
    CLOSED = "closed"


class ActionKind(str, Enum):
    """Rate-limited action kinds."""

    SUPERLIKE = "superlike"


class QuotaPeriod(str, Enum):
    """Period over which a quota counter accumulates."""

    DAY = "day"
    MONTH = "month"


class QueueSort(str, Enum):
    """Sort keys accepted by the queue builder."""

    DISTANCE = "distance"
    RECENCY = "recency"
    SCORE = "score"


class SuperlikeFallback(str, Enum):
    """Policy applied when a superlike is rejected by its quota."""

    REJECT = "reject"
    DOWNGRADE = "downgrade"


class AuditAction(str, Enum):
    """Types of engine actions that are audited."""

    SWIPE_RECORDED = "swipe_recorded"
    SUPERLIKE_DOWNGRADED = "superlike_downgraded"
    QUOTA_CONSUMED = "quota_consumed"
    QUOTA_REJECTED = "quota_rejected"
    QUOTA_RELEASED = "quota_released"
    MATCH_CREATED = "match_created"
    MATCH_NOTIFIED = "match_notified"
    MATCH_CLOSED = "match_closed"


# =============================================================================
# Subscription Limits
# =============================================================================

# Daily super-like allowance per role and tier; None means unlimited
SUPERLIKE_DAILY_LIMITS: Final[dict[ActorRole, dict[SubscriptionTier, Optional[int]]]] = {
    ActorRole.LABORATORY: {
        SubscriptionTier.FREE: 3,
        SubscriptionTier.STARTER: 5,
        SubscriptionTier.PRO: 15,
        SubscriptionTier.BUSINESS: None,
    },
    ActorRole.RECRUITER: {
        SubscriptionTier.FREE: 3,
        SubscriptionTier.PRO: 10,
        SubscriptionTier.BUSINESS: None,
    },
    ActorRole.ANIMATOR: {
        SubscriptionTier.FREE: 1,
        SubscriptionTier.PREMIUM: 5,
    },
    ActorRole.CANDIDATE: {
        SubscriptionTier.FREE: 1,
        SubscriptionTier.PREMIUM: 5,
    },
    ActorRole.STUDENT: {
        SubscriptionTier.FREE: 1,
        SubscriptionTier.PREMIUM: 5,
    },
}

QUOTA_PERIODS: Final[dict[ActionKind, QuotaPeriod]] = {
    ActionKind.SUPERLIKE: QuotaPeriod.DAY,
}
