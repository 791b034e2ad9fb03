"""
Actor data models for PharMatch.

Defines the people acting on the marketplace (candidates, students,
recruiters, laboratories, animators) and the profile attributes the
compatibility score reads.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from pharmatch.utils.constants import ActorRole, SubscriptionTier

from .base import BaseDocument, EmbeddedModel, as_naive_utc


class GeoPoint(EmbeddedModel):
    """WGS84 coordinates."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    @property
    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


class AvailabilityWindow(EmbeddedModel):
    """A declared period of availability (inclusive start, exclusive end)."""

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return as_naive_utc(v)

    @model_validator(mode="after")
    def check_order(self) -> "AvailabilityWindow":
        if self.end < self.start:
            raise ValueError("Availability window ends before it starts")
        return self


class Actor(BaseDocument):
    """
    A user acting on the marketplace.

    Seeker-side attributes (contract types wanted, diploma, experience,
    specialties, mobility zones, availability) are only meaningful for
    candidates, students and animators; publishers leave them empty.
    """

    actor_id: str
    role: ActorRole
    tier: SubscriptionTier = SubscriptionTier.FREE
    display_name: Optional[str] = None

    # Location
    location: Optional[GeoPoint] = None
    region: Optional[str] = None

    # Seeker profile
    contract_types: list[str] = Field(default_factory=list)  # e.g., "cdi", "cdd", "alternance"
    diploma_level: Optional[str] = None  # key of DIPLOMA_LEVELS
    experience_years: Optional[float] = Field(default=None, ge=0)
    specialties: list[str] = Field(default_factory=list)
    mobility_zones: list[str] = Field(default_factory=list)  # regions the actor accepts
    availability: list[AvailabilityWindow] = Field(default_factory=list)

    @field_validator("contract_types", "specialties", "mobility_zones")
    @classmethod
    def normalize_labels(cls, v: list[str]) -> list[str]:
        """Normalize free-text labels to lowercase."""
        return [item.strip().lower() for item in v if item and item.strip()]

    @field_validator("diploma_level", "region")
    @classmethod
    def normalize_optional_label(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v
