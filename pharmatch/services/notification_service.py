"""
Match notification service for PharMatch.

Push delivery belongs to the surrounding marketplace. This service records
each new match on the audit trail and fans it out to registered callbacks
(a push gateway, a conversation bootstrapper, ...).
"""

from collections.abc import Callable
from typing import Optional

from pharmatch.data.models import Match
from pharmatch.utils.constants import AuditAction
from pharmatch.utils.logger import audit_log, get_logger

logger = get_logger(__name__)

MatchCallback = Callable[[Match], None]


class LoggingNotificationService:
    """
    Notification service that audits matches and calls subscribers.

    A failing subscriber does not stop the others; errors are logged.
    """

    def __init__(self, callbacks: Optional[list[MatchCallback]] = None):
        self._callbacks: list[MatchCallback] = list(callbacks or [])

    def on_match_created(self, match: Match) -> None:
        audit_log(
            AuditAction.MATCH_NOTIFIED.value,
            {
                "match_id": match.match_id,
                "recipients": [match.actor_a, match.actor_b],
                "context_target_id": match.context_target_id,
            },
            audit_type="MATCH",
        )
        for callback in self._callbacks:
            try:
                callback(match)
            except Exception as e:
                logger.error(f"Match subscriber {callback!r} failed: {e}")


# Singleton instance
_notification_service: Optional[LoggingNotificationService] = None


def get_notification_service() -> LoggingNotificationService:
    """Get the notification service singleton instance."""
    global _notification_service
    if _notification_service is None:
        _notification_service = LoggingNotificationService()
    return _notification_service
