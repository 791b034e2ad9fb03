"""
Compatibility scoring between a seeker and a listing.

Scores are a weighted mean of independent sub-scores in [0, 1], scaled to
0-100 and rounded half up. Factors whose inputs are missing on either side
are left out and the remaining weights are renormalised. Distance is
always applicable, so its share of the total never depends on the
distance value itself.

The engine is pure: no I/O, no clock. Availability is evaluated against
``now`` only when the caller passes it.
"""

from datetime import datetime
from typing import Optional

from geopy.distance import great_circle

from pharmatch.data.models import (
    Actor,
    AvailabilityWindow,
    FactorScore,
    ScoreBreakdown,
    Target,
)
from pharmatch.utils.config import get_settings
from pharmatch.utils.constants import DEFAULT_SCORING_WEIGHTS, DIPLOMA_LEVELS
from pharmatch.utils.logger import get_logger

logger = get_logger(__name__)

# Credit for a mobility zone that covers the listing region without being home
MOBILITY_ZONE_CREDIT = 0.6


class ScoreEngine:
    """
    Deterministic, explainable compatibility scorer.

    Uses a multi-factor approach:
    - Distance between seeker and listing (linear decay to a radius)
    - Contract type wanted vs offered
    - Diploma and experience requirement satisfaction
    - Specialty overlap (animators and missions)
    - Mobility-zone coverage of the listing region
    - Availability coverage of a time-bound listing
    """

    def __init__(
        self,
        weights: Optional[dict[str, float]] = None,
        max_radius_km: Optional[float] = None,
    ):
        """
        Initialize the score engine.

        Args:
            weights: Optional custom factor weights (missing keys use defaults)
            max_radius_km: Distance at which the distance factor reaches 0
        """
        settings = get_settings().matching
        merged = dict(DEFAULT_SCORING_WEIGHTS)
        merged.update(weights if weights is not None else settings.weights)
        self.weights = merged
        self.max_radius_km = max_radius_km or settings.max_radius_km

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def score(
        self,
        requester: Actor,
        target: Target,
        now: Optional[datetime] = None,
        context: Optional[Target] = None,
    ) -> int:
        """
        Score a target for a requester.

        For offers and missions the requester is the seeker and the target
        the listing. For candidate and animator targets the seeker is the
        embedded profile and the listing is ``context``.

        Returns:
            Integer score in 0..100
        """
        return self.breakdown(requester, target, now=now, context=context).total_score

    def breakdown(
        self,
        requester: Actor,
        target: Target,
        now: Optional[datetime] = None,
        context: Optional[Target] = None,
    ) -> ScoreBreakdown:
        """Per-factor breakdown of ``score``."""
        if target.kind.is_listing:
            return self.breakdown_pair(requester, target, now=now)

        seeker = target.profile
        if seeker is None:
            logger.warning(f"Profile target {target.target_id} has no embedded profile")
            return self._distance_only(requester, target)
        if context is None:
            return self._distance_only(requester, target)
        return self.breakdown_pair(seeker, context, now=now)

    def breakdown_pair(
        self,
        seeker: Actor,
        listing: Target,
        now: Optional[datetime] = None,
    ) -> ScoreBreakdown:
        """Breakdown for a seeker profile against a listing's requirements."""
        distance_km = self._distance_km(seeker, listing)
        factors = [
            self._distance_factor(distance_km),
            self._contract_factor(seeker, listing),
            self._diploma_factor(seeker, listing),
            self._experience_factor(seeker, listing),
            self._specialty_factor(seeker, listing),
            self._mobility_factor(seeker, listing),
            self._availability_factor(seeker, listing, now),
        ]
        return ScoreBreakdown(factors=factors, distance_km=distance_km)

    def distance_km(self, requester: Actor, target: Target) -> Optional[float]:
        """Great-circle distance in km, None when a location is missing."""
        location = target.location
        if location is None and target.profile is not None:
            location = target.profile.location
        if requester.location is None or location is None:
            return None
        return great_circle(requester.location.as_tuple, location.as_tuple).kilometers

    # -------------------------------------------------------------------------
    # Factors
    # -------------------------------------------------------------------------

    def _distance_km(self, seeker: Actor, listing: Target) -> Optional[float]:
        if seeker.location is None or listing.location is None:
            return None
        return great_circle(seeker.location.as_tuple, listing.location.as_tuple).kilometers

    def _distance_factor(self, distance_km: Optional[float]) -> FactorScore:
        if distance_km is None:
            value = 1.0
        else:
            value = max(0.0, 1.0 - distance_km / self.max_radius_km)
        return FactorScore(name="distance", value=value, weight=self.weights["distance"])

    def _contract_factor(self, seeker: Actor, listing: Target) -> FactorScore:
        weight = self.weights["contract_type"]
        if not seeker.contract_types or not listing.contract_type:
            return FactorScore(name="contract_type", value=0.0, weight=weight, applicable=False)
        value = 1.0 if listing.contract_type in seeker.contract_types else 0.0
        return FactorScore(name="contract_type", value=value, weight=weight)

    def _diploma_factor(self, seeker: Actor, listing: Target) -> FactorScore:
        weight = self.weights["diploma"]
        required = DIPLOMA_LEVELS.get(listing.required_diploma or "")
        held = DIPLOMA_LEVELS.get(seeker.diploma_level or "")
        if required is None or held is None:
            return FactorScore(name="diploma", value=0.0, weight=weight, applicable=False)

        if held >= required:
            value = 1.0
        elif held == required - 1:
            # One level below
            value = 0.7
        else:
            value = 0.0
        return FactorScore(name="diploma", value=value, weight=weight)

    def _experience_factor(self, seeker: Actor, listing: Target) -> FactorScore:
        weight = self.weights["experience"]
        required = listing.required_experience_years
        years = seeker.experience_years
        if required is None or years is None:
            return FactorScore(name="experience", value=0.0, weight=weight, applicable=False)

        if years >= required:
            value = 1.0
        elif years >= required - 1:
            # Within a year of the requirement
            value = 0.5
        else:
            value = 0.0
        return FactorScore(name="experience", value=value, weight=weight)

    def _specialty_factor(self, seeker: Actor, listing: Target) -> FactorScore:
        weight = self.weights["specialties"]
        wanted = set(listing.specialties)
        offered = set(seeker.specialties)
        if not wanted or not offered:
            return FactorScore(name="specialties", value=0.0, weight=weight, applicable=False)
        value = len(wanted & offered) / len(wanted)
        return FactorScore(name="specialties", value=value, weight=weight)

    def _mobility_factor(self, seeker: Actor, listing: Target) -> FactorScore:
        weight = self.weights["mobility"]
        if not listing.region or not (seeker.region or seeker.mobility_zones):
            return FactorScore(name="mobility", value=0.0, weight=weight, applicable=False)

        if listing.region == seeker.region:
            value = 1.0
        elif listing.region in seeker.mobility_zones:
            value = MOBILITY_ZONE_CREDIT
        else:
            value = 0.0
        return FactorScore(name="mobility", value=value, weight=weight)

    def _availability_factor(
        self,
        seeker: Actor,
        listing: Target,
        now: Optional[datetime],
    ) -> FactorScore:
        weight = self.weights["availability"]
        if listing.start_date is None or not seeker.availability:
            return FactorScore(name="availability", value=0.0, weight=weight, applicable=False)

        start = listing.start_date
        end = listing.end_date or listing.start_date
        if now is not None and now > start:
            start = min(now, end)
        value = availability_coverage(start, end, seeker.availability)
        return FactorScore(name="availability", value=value, weight=weight)

    def _distance_only(self, requester: Actor, target: Target) -> ScoreBreakdown:
        distance_km = self.distance_km(requester, target)
        return ScoreBreakdown(factors=[self._distance_factor(distance_km)], distance_km=distance_km)


def availability_coverage(
    start: datetime,
    end: datetime,
    windows: list[AvailabilityWindow],
) -> float:
    """
    Fraction of [start, end) covered by the union of availability windows.

    A zero-length request is covered when any window contains its instant.
    """
    if end <= start:
        return 1.0 if any(w.start <= start <= w.end for w in windows) else 0.0

    clipped = sorted(
        (max(w.start, start), min(w.end, end))
        for w in windows
        if w.end > start and w.start < end
    )
    covered = 0.0
    cursor = start
    for window_start, window_end in clipped:
        window_start = max(window_start, cursor)
        if window_end > window_start:
            covered += (window_end - window_start).total_seconds()
            cursor = window_end
    return min(1.0, covered / (end - start).total_seconds())
