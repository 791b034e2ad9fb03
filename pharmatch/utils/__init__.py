"""
Utility modules for PharMatch.

This package contains shared utilities used across the application:
- config: Configuration management
- logger: Logging infrastructure
- constants: Application-wide constants
"""

from pharmatch.utils.config import (
    AppSettings,
    MatchingSettings,
    get_settings,
    reload_settings,
    ROOT_DIR,
    PACKAGE_DIR,
    DATA_DIR,
)
from pharmatch.utils.constants import (
    APP_NAME,
    APP_DISPLAY_NAME,
    VERSION,
    ActionKind,
    ActorRole,
    AuditAction,
    MatchStatus,
    QueueSort,
    SubscriptionTier,
    SwipeDecision,
    TargetStatus,
    TargetType,
)
from pharmatch.utils.logger import (
    setup_logging,
    get_logger,
    audit_log,
    log,
)

__all__ = [
    # Config
    "AppSettings",
    "MatchingSettings",
    "get_settings",
    "reload_settings",
    "ROOT_DIR",
    "PACKAGE_DIR",
    "DATA_DIR",
    # Constants
    "APP_NAME",
    "APP_DISPLAY_NAME",
    "VERSION",
    "ActionKind",
    "ActorRole",
    "AuditAction",
    "MatchStatus",
    "QueueSort",
    "SubscriptionTier",
    "SwipeDecision",
    "TargetStatus",
    "TargetType",
    # Logger
    "setup_logging",
    "get_logger",
    "audit_log",
    "log",
]
