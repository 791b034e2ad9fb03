"""
Errors raised by the matching engine.

Every error a caller can observe derives from ``MatchingError``. Driver
failures from pymongo are translated to ``StorageError`` at the engine
boundary; expected write races are retried before that happens.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

from pymongo.errors import PyMongoError


class MatchingError(Exception):
    """Base exception for matching engine errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TargetUnavailable(MatchingError):
    """Target (or its context listing) is missing, expired or withdrawn."""
    pass


class QuotaExceeded(MatchingError):
    """A quota-gated action was attempted with no allowance left."""

    def __init__(
        self,
        message: str,
        limit: Optional[int] = None,
        used: Optional[int] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.limit = limit
        self.used = used


class Blocked(MatchingError):
    """The actor and the target's owner are in a block relationship."""
    pass


class InvalidSwipe(MatchingError):
    """Malformed request: unknown actor, own target, or a bad context."""
    pass


class MatchNotFound(MatchingError):
    """No match with this identifier involves the requesting actor."""
    pass


class StorageError(MatchingError):
    """The backing store failed for a reason unrelated to matching rules."""
    pass


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    """Re-raise pymongo failures inside the block as ``StorageError``."""
    try:
        yield
    except PyMongoError as e:
        raise StorageError(
            f"Storage failure during {operation}",
            details={"error": str(e), "operation": operation},
        ) from e
