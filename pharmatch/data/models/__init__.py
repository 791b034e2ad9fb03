"""
Pydantic data models and schemas for PharMatch.

This module provides all data models used by the matching engine,
including database documents and embedded models.
"""

# Base models
from .base import (
    BaseDocument,
    EmbeddedModel,
    PyObjectId,
    TimestampMixin,
    as_naive_utc,
    utcnow,
)

# Actor models
from .actor import Actor, AvailabilityWindow, GeoPoint

# Target models
from .target import Target

# Swipe models
from .swipe import SwipeAction, swipe_key

# Match models
from .match import FactorScore, Match, ScoreBreakdown, match_key

# Quota models
from .quota import QuotaUsage

# Block models
from .block import Block

__all__ = [
    # Base
    "BaseDocument",
    "EmbeddedModel",
    "PyObjectId",
    "TimestampMixin",
    "as_naive_utc",
    "utcnow",
    # Actor
    "Actor",
    "AvailabilityWindow",
    "GeoPoint",
    # Target
    "Target",
    # Swipe
    "SwipeAction",
    "swipe_key",
    # Match
    "FactorScore",
    "Match",
    "ScoreBreakdown",
    "match_key",
    # Quota
    "QuotaUsage",
    # Block
    "Block",
]
