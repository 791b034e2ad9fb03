"""
Block list repository for PharMatch.
"""

from typing import Optional

from pymongo.errors import DuplicateKeyError

from pharmatch.data.database import BLOCKS
from pharmatch.data.models.block import Block
from pharmatch.utils.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)


class BlockRepository(BaseRepository[Block]):
    """Repository for block relationships between actors."""

    @property
    def collection_name(self) -> str:
        return BLOCKS

    @property
    def model_class(self) -> type[Block]:
        return Block

    def block(self, blocker_id: str, blocked_id: str) -> bool:
        """
        Record that ``blocker_id`` blocks ``blocked_id``.

        Returns:
            True if the block was created, False if it already existed
        """
        if blocker_id == blocked_id:
            raise ValueError("An actor cannot block itself")
        try:
            self.create(Block(blocker_id=blocker_id, blocked_id=blocked_id))
        except DuplicateKeyError:
            return False
        logger.info(f"Actor {blocker_id} blocked {blocked_id}")
        return True

    def unblock(self, blocker_id: str, blocked_id: str) -> bool:
        """Remove a block; returns True if one was removed."""
        result = self.collection.delete_one(
            {"blocker_id": blocker_id, "blocked_id": blocked_id}
        )
        return result.deleted_count > 0

    def are_blocked(self, actor_a: str, actor_b: str) -> bool:
        """Check whether either actor blocks the other."""
        return self.exists(
            {
                "$or": [
                    {"blocker_id": actor_a, "blocked_id": actor_b},
                    {"blocker_id": actor_b, "blocked_id": actor_a},
                ]
            }
        )

    def related_actor_ids(self, actor_id: str) -> set[str]:
        """All actors in a block relationship with ``actor_id``, either direction."""
        related: set[str] = set()
        cursor = self.collection.find(
            {"$or": [{"blocker_id": actor_id}, {"blocked_id": actor_id}]},
            {"blocker_id": 1, "blocked_id": 1},
        )
        for doc in cursor:
            other = doc["blocked_id"] if doc["blocker_id"] == actor_id else doc["blocker_id"]
            related.add(other)
        return related


# Singleton instance
_block_repository: Optional[BlockRepository] = None


def get_block_repository() -> BlockRepository:
    """Get the block repository singleton instance."""
    global _block_repository
    if _block_repository is None:
        _block_repository = BlockRepository()
    return _block_repository
