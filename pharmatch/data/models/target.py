"""
Swipeable target models for PharMatch.

A target is an offer (job or internship), a mission, or a candidate /
animator profile. Listings are owned by the recruiter or laboratory that
published them; a profile target is owned by the person it describes.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator, model_validator

from pharmatch.utils.constants import (
    ELIGIBLE_TARGET_STATUSES,
    TargetStatus,
    TargetType,
)

from .actor import Actor, GeoPoint
from .base import BaseDocument, as_naive_utc


class Target(BaseDocument):
    """
    A swipeable entity.

    Listing attributes describe what an offer or mission asks for; profile
    targets carry the described actor in ``profile``.
    """

    target_id: str
    target_type: TargetType
    owner_id: str
    title: Optional[str] = None
    status: TargetStatus = TargetStatus.ACTIVE
    expires_at: Optional[datetime] = None

    # Location
    location: Optional[GeoPoint] = None
    region: Optional[str] = None

    # Listing requirements
    contract_type: Optional[str] = None
    required_diploma: Optional[str] = None
    required_experience_years: Optional[float] = Field(default=None, ge=0)
    specialties: list[str] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # Profile targets only
    profile: Optional[Actor] = None

    @field_validator("specialties")
    @classmethod
    def normalize_specialties(cls, v: list[str]) -> list[str]:
        return [item.strip().lower() for item in v if item and item.strip()]

    @field_validator("contract_type", "required_diploma", "region")
    @classmethod
    def normalize_optional_label(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

    @field_validator("expires_at", "start_date", "end_date")
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Aware datetimes are stored as naive UTC."""
        return as_naive_utc(v) if v is not None else v

    @model_validator(mode="after")
    def check_profile_ownership(self) -> "Target":
        """A profile target is owned by the actor it describes."""
        if self.kind.is_profile and self.owner_id != self.target_id:
            raise ValueError("Profile targets must be owned by their own actor")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("Target window ends before it starts")
        return self

    @property
    def kind(self) -> TargetType:
        return TargetType(self.target_type)

    def is_expired(self, now: datetime) -> bool:
        """Expired, withdrawn or closed targets can no longer be swiped."""
        if TargetStatus(self.status) not in ELIGIBLE_TARGET_STATUSES:
            return True
        return self.expires_at is not None and self.expires_at <= now

    def is_owned_by(self, actor_id: str) -> bool:
        return self.owner_id == actor_id
