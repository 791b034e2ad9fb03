"""
Database repositories for PharMatch data access.

This module provides repository classes for all database collections,
implementing the repository pattern for clean data access.
"""

# Base repository
from .base import BaseRepository

# Entity repositories
from .actor_repository import (
    ActorRepository,
    TargetRepository,
    get_actor_repository,
    get_target_repository,
)
from .block_repository import BlockRepository, get_block_repository
from .match_repository import MatchRepository, get_match_repository
from .quota_repository import QuotaRepository, get_quota_repository
from .swipe_repository import SwipeRepository, get_swipe_repository

__all__ = [
    # Base
    "BaseRepository",
    # Actors and targets
    "ActorRepository",
    "TargetRepository",
    "get_actor_repository",
    "get_target_repository",
    # Blocks
    "BlockRepository",
    "get_block_repository",
    # Matches
    "MatchRepository",
    "get_match_repository",
    # Quotas
    "QuotaRepository",
    "get_quota_repository",
    # Swipes
    "SwipeRepository",
    "get_swipe_repository",
]
