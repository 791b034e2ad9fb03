"""
Actor and target repositories for PharMatch.

Mongo-backed implementations of the profile and offer stores the
matching engine reads from. Writes here belong to the surrounding
marketplace; the engine itself only reads.
"""

from datetime import datetime
from typing import Any, Optional

from pymongo import ReturnDocument

from pharmatch.data.database import ACTORS, TARGETS
from pharmatch.data.models.actor import Actor
from pharmatch.data.models.base import utcnow
from pharmatch.data.models.target import Target
from pharmatch.utils.constants import (
    ELIGIBLE_TARGET_STATUSES,
    TargetStatus,
    TargetType,
)
from pharmatch.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class ActorRepository(BaseRepository[Actor]):
    """Repository for actor documents."""

    @property
    def collection_name(self) -> str:
        return ACTORS

    @property
    def model_class(self) -> type[Actor]:
        return Actor

    def get_actor(self, actor_id: str) -> Optional[Actor]:
        """Get an actor by its marketplace identifier."""
        return self.find_one({"actor_id": actor_id})

    def save(self, actor: Actor) -> Actor:
        """Insert or replace an actor keyed by actor_id."""
        document = self._to_document(actor)
        document.pop("_id", None)
        document.pop("created_at", None)
        document["updated_at"] = utcnow()

        saved = self.collection.find_one_and_update(
            {"actor_id": actor.actor_id},
            {"$set": document, "$setOnInsert": {"created_at": actor.created_at}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.debug(f"Saved actor {actor.actor_id}")
        return self._to_model(saved)


class TargetRepository(BaseRepository[Target]):
    """Repository for swipeable targets (offers, missions, profiles)."""

    @property
    def collection_name(self) -> str:
        return TARGETS

    @property
    def model_class(self) -> type[Target]:
        return Target

    # -------------------------------------------------------------------------
    # Offer store
    # -------------------------------------------------------------------------

    def get(self, target_type: TargetType | str, target_id: str) -> Optional[Target]:
        """Get a target by type and identifier, or None when missing."""
        return self.find_one(
            {"target_type": TargetType(target_type).value, "target_id": target_id}
        )

    def list_targets(
        self,
        target_type: TargetType | str,
        regions: Optional[list[str]] = None,
        limit: int = 0,
    ) -> list[Target]:
        """List targets of a type that are still publishable."""
        query: dict[str, Any] = {
            "target_type": TargetType(target_type).value,
            "status": {"$in": [s.value for s in ELIGIBLE_TARGET_STATUSES]},
        }
        if regions:
            query["region"] = {"$in": [r.lower() for r in regions]}
        return self.find(query, limit=limit, sort_by="target_id", sort_order=1)

    def is_owned_by(self, target_id: str, actor_id: str) -> bool:
        """Check whether ``actor_id`` owns any target with this identifier."""
        return self.exists({"target_id": target_id, "owner_id": actor_id})

    def is_expired(self, target: Target, now: Optional[datetime] = None) -> bool:
        """Check whether a target can no longer be swiped."""
        return target.is_expired(now or utcnow())

    # -------------------------------------------------------------------------
    # Publisher writes
    # -------------------------------------------------------------------------

    def save(self, target: Target) -> Target:
        """Insert or replace a target keyed by (target_type, target_id)."""
        document = self._to_document(target)
        document.pop("_id", None)
        document.pop("created_at", None)
        document["updated_at"] = utcnow()

        saved = self.collection.find_one_and_update(
            {"target_type": document["target_type"], "target_id": target.target_id},
            {"$set": document, "$setOnInsert": {"created_at": target.created_at}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._to_model(saved)

    def set_status(
        self,
        target_type: TargetType | str,
        target_id: str,
        status: TargetStatus,
    ) -> Optional[Target]:
        """Change the publication status (e.g. withdraw or close an offer)."""
        updated = self.collection.find_one_and_update(
            {"target_type": TargetType(target_type).value, "target_id": target_id},
            {"$set": {"status": status.value, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is not None:
            logger.info(f"Target {TargetType(target_type).value}/{target_id} set to {status.value}")
        return self._to_model(updated)

    def close_expired(self, now: Optional[datetime] = None) -> int:
        """Mark every listing whose expiry has passed as expired."""
        now = now or utcnow()
        result = self.collection.update_many(
            {
                "status": {"$in": [s.value for s in ELIGIBLE_TARGET_STATUSES]},
                "expires_at": {"$ne": None, "$lte": now},
            },
            {"$set": {"status": TargetStatus.EXPIRED.value, "updated_at": now}},
        )
        if result.modified_count:
            logger.info(f"Closed {result.modified_count} expired targets")
        return result.modified_count


# Singleton instances
_actor_repository: Optional[ActorRepository] = None
_target_repository: Optional[TargetRepository] = None


def get_actor_repository() -> ActorRepository:
    """Get the actor repository singleton instance."""
    global _actor_repository
    if _actor_repository is None:
        _actor_repository = ActorRepository()
    return _actor_repository


def get_target_repository() -> TargetRepository:
    """Get the target repository singleton instance."""
    global _target_repository
    if _target_repository is None:
        _target_repository = TargetRepository()
    return _target_repository
