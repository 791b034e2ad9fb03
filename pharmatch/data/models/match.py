"""
Match and scoring data models for PharMatch.

Defines the schema for mutual-like matches and the explainable
breakdown of the compatibility score.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from pharmatch.utils.constants import MatchStatus, TargetType

from .base import BaseDocument, EmbeddedModel, utcnow


class FactorScore(EmbeddedModel):
    """A single normalized sub-score."""

    name: str
    value: float = Field(ge=0, le=1)
    weight: float = Field(ge=0)
    applicable: bool = True

    @property
    def weighted(self) -> float:
        return self.value * self.weight if self.applicable else 0.0


class ScoreBreakdown(EmbeddedModel):
    """Breakdown of a compatibility score by factor."""

    factors: list[FactorScore] = Field(default_factory=list)
    distance_km: Optional[float] = None

    @property
    def applicable_weight(self) -> float:
        return sum(f.weight for f in self.factors if f.applicable)

    @property
    def normalized(self) -> float:
        """Weighted mean over applicable factors, in [0, 1]."""
        total_weight = self.applicable_weight
        if total_weight <= 0:
            return 0.0
        value = sum(f.weighted for f in self.factors) / total_weight
        return min(1.0, max(0.0, value))

    @property
    def total_score(self) -> int:
        """Score on the 0-100 scale, rounded half up."""
        return int(round(self.normalized * 100, 9) + 0.5)


class Match(BaseDocument):
    """
    A mutual like between two actors, scoped to an offer or mission.

    actor_a and actor_b are stored in sorted order so that the unordered
    pair plus context maps to exactly one document.
    """

    actor_a: str
    actor_b: str
    target_type: TargetType  # type of the context listing
    context_target_id: str
    score: int = Field(0, ge=0, le=100)
    matched_at: datetime = Field(default_factory=utcnow)

    # Status
    status: MatchStatus = MatchStatus.ACTIVE
    closed_at: Optional[datetime] = None
    closed_by: Optional[str] = None

    @model_validator(mode="after")
    def check_pair(self) -> "Match":
        if self.actor_a == self.actor_b:
            raise ValueError("A match needs two distinct actors")
        if self.actor_a > self.actor_b:
            self.actor_a, self.actor_b = self.actor_b, self.actor_a
        return self

    @property
    def match_id(self) -> Optional[str]:
        return str(self.id) if self.id is not None else None

    @property
    def is_active(self) -> bool:
        return self.status == MatchStatus.ACTIVE

    def involves(self, actor_id: str) -> bool:
        return actor_id in (self.actor_a, self.actor_b)

    def other_party(self, actor_id: str) -> str:
        """Return the participant that is not ``actor_id``."""
        if actor_id == self.actor_a:
            return self.actor_b
        if actor_id == self.actor_b:
            return self.actor_a
        raise ValueError(f"Actor {actor_id} is not part of match {self.match_id}")


def match_key(actor_1: str, actor_2: str, context_target_id: str) -> dict[str, str]:
    """Unique key of the match between two actors in one context."""
    actor_a, actor_b = sorted((actor_1, actor_2))
    return {
        "actor_a": actor_a,
        "actor_b": actor_b,
        "context_target_id": context_target_id,
    }
