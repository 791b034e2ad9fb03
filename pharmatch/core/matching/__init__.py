"""Swipe matching engine module."""

from .exceptions import (
    Blocked,
    InvalidSwipe,
    MatchingError,
    MatchNotFound,
    QuotaExceeded,
    StorageError,
    TargetUnavailable,
)
from .interfaces import BlockList, NotificationService, OfferStore, ProfileStore
from .match_detector import MatchDetector
from .matching_engine import MatchingEngine, SwipeResult, get_matching_engine
from .queue_builder import QueueBuilder, QueueEntry, QueueFilters
from .quota_manager import QuotaDecision, QuotaManager, QuotaStatus
from .score_engine import ScoreEngine
from .subscription import SubscriptionConfig, TierLimit, period_start
from .swipe_ledger import RecordResult, ResolvedTarget, SwipeLedger

__all__ = [
    # Engine
    "MatchingEngine",
    "SwipeResult",
    "get_matching_engine",
    # Components
    "MatchDetector",
    "QueueBuilder",
    "QueueEntry",
    "QueueFilters",
    "QuotaDecision",
    "QuotaManager",
    "QuotaStatus",
    "RecordResult",
    "ResolvedTarget",
    "ScoreEngine",
    "SubscriptionConfig",
    "SwipeLedger",
    "TierLimit",
    "period_start",
    # Collaborators
    "BlockList",
    "NotificationService",
    "OfferStore",
    "ProfileStore",
    # Errors
    "Blocked",
    "InvalidSwipe",
    "MatchNotFound",
    "MatchingError",
    "QuotaExceeded",
    "StorageError",
    "TargetUnavailable",
]
