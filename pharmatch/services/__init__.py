"""
Business services for PharMatch.

This module contains services the matching engine hands results to.
"""

from pharmatch.services.notification_service import (
    LoggingNotificationService,
    get_notification_service,
)

__all__ = [
    "LoggingNotificationService",
    "get_notification_service",
]
