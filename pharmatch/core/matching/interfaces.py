"""
Collaborator protocols consumed by the matching engine.

The Mongo repositories in ``pharmatch.data.repositories`` satisfy these
structurally; tests and other transports may plug in their own.
"""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from pharmatch.data.models import Actor, Match, Target
from pharmatch.utils.constants import TargetType


@runtime_checkable
class ProfileStore(Protocol):
    """Read access to actors."""

    def get_actor(self, actor_id: str) -> Optional[Actor]:
        ...


@runtime_checkable
class OfferStore(Protocol):
    """Read access to swipeable targets."""

    def get(self, target_type: TargetType | str, target_id: str) -> Optional[Target]:
        ...

    def list_targets(
        self,
        target_type: TargetType | str,
        regions: Optional[list[str]] = None,
        limit: int = 0,
    ) -> list[Target]:
        ...

    def is_owned_by(self, target_id: str, actor_id: str) -> bool:
        ...

    def is_expired(self, target: Target, now: Optional[datetime] = None) -> bool:
        ...


@runtime_checkable
class BlockList(Protocol):
    """Symmetric block relationship between actors."""

    def are_blocked(self, actor_a: str, actor_b: str) -> bool:
        ...

    def related_actor_ids(self, actor_id: str) -> set[str]:
        ...


@runtime_checkable
class NotificationService(Protocol):
    """Receives newly created matches. Fire-and-forget."""

    def on_match_created(self, match: Match) -> None:
        ...
