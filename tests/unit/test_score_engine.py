"""
Tests for pharmatch.core.matching.score_engine: ScoreEngine factors and totals.

Scores are checked against hand-computed weighted means over the
default weights, renormalised over the applicable factors.
"""

from datetime import datetime, timedelta

import pytest

from pharmatch.core.matching.score_engine import (
    MOBILITY_ZONE_CREDIT,
    ScoreEngine,
    availability_coverage,
)
from pharmatch.data.models import Actor, AvailabilityWindow, GeoPoint, Target
from pharmatch.utils.constants import DEFAULT_SCORING_WEIGHTS, ActorRole, TargetType

NOW = datetime(2026, 3, 2, 9, 30, 0)
PARIS = GeoPoint(latitude=48.8606, longitude=2.3376)
VERSAILLES = GeoPoint(latitude=48.8049, longitude=2.1204)
LYON = GeoPoint(latitude=45.7640, longitude=4.8357)


@pytest.fixture
def score_engine():
    return ScoreEngine(weights=dict(DEFAULT_SCORING_WEIGHTS), max_radius_km=50.0)


def factor(breakdown, name):
    return next(f for f in breakdown.factors if f.name == name)


def seeker(**kwargs) -> Actor:
    kwargs.setdefault("actor_id", "cand-1")
    kwargs.setdefault("role", ActorRole.CANDIDATE)
    return Actor(**kwargs)


def listing(**kwargs) -> Target:
    kwargs.setdefault("target_id", "offer-1")
    kwargs.setdefault("target_type", TargetType.JOB_OFFER)
    kwargs.setdefault("owner_id", "rec-1")
    return Target(**kwargs)


# ── Totals and renormalisation ──────────────────────────────────────────────


class TestTotals:
    def test_nothing_known_scores_full(self, score_engine):
        # Only distance applies and an unknown distance is neutral
        assert score_engine.score(seeker(), listing()) == 100

    def test_perfect_match(self, score_engine):
        s = seeker(location=PARIS, contract_types=["cdi"], diploma_level="doctorat", experience_years=5)
        o = listing(location=PARIS, contract_type="cdi", required_diploma="doctorat", required_experience_years=2)
        assert score_engine.score(s, o) == 100

    def test_contract_mismatch_renormalised(self, score_engine):
        s = seeker(location=PARIS, contract_types=["cdd"])
        o = listing(location=PARIS, contract_type="cdi")
        # (0.25 * 1 + 0.15 * 0) / 0.40 = 0.625
        assert score_engine.score(s, o) == 63

    def test_score_is_bounded(self, score_engine):
        s = seeker(location=LYON, contract_types=["cdd"], diploma_level="cap", experience_years=0)
        o = listing(location=PARIS, contract_type="cdi", required_diploma="doctorat", required_experience_years=10)
        assert score_engine.score(s, o) == 0

    def test_missing_factor_does_not_penalise(self, score_engine):
        with_diploma = seeker(location=PARIS, diploma_level="doctorat")
        without = seeker(location=PARIS)
        o = listing(location=PARIS, required_diploma="doctorat")
        assert score_engine.score(with_diploma, o) == score_engine.score(without, o) == 100

    def test_deterministic(self, score_engine):
        s = seeker(location=VERSAILLES, contract_types=["cdi"], experience_years=1)
        o = listing(location=PARIS, contract_type="cdi", required_experience_years=2)
        assert score_engine.score(s, o) == score_engine.score(s, o)

    def test_custom_weights_merge_with_defaults(self):
        engine = ScoreEngine(weights={"distance": 0.0}, max_radius_km=50.0)
        assert engine.weights["distance"] == 0.0
        assert engine.weights["contract_type"] == DEFAULT_SCORING_WEIGHTS["contract_type"]


# ── Distance ────────────────────────────────────────────────────────────────


class TestDistance:
    def test_same_place(self, score_engine):
        bd = score_engine.breakdown_pair(seeker(location=PARIS), listing(location=PARIS))
        assert bd.distance_km == pytest.approx(0.0)
        assert factor(bd, "distance").value == 1.0

    def test_linear_decay(self, score_engine):
        bd = score_engine.breakdown_pair(seeker(location=VERSAILLES), listing(location=PARIS))
        assert bd.distance_km == pytest.approx(17.5, abs=2.0)
        assert factor(bd, "distance").value == pytest.approx(1 - bd.distance_km / 50.0)

    def test_beyond_radius_is_zero(self, score_engine):
        bd = score_engine.breakdown_pair(seeker(location=LYON), listing(location=PARIS))
        assert bd.distance_km > 50.0
        assert factor(bd, "distance").value == 0.0

    def test_missing_location_is_neutral(self, score_engine):
        bd = score_engine.breakdown_pair(seeker(location=None), listing(location=PARIS))
        assert bd.distance_km is None
        assert factor(bd, "distance").value == 1.0
        assert factor(bd, "distance").applicable

    def test_monotone_in_distance(self, score_engine):
        o = listing(location=PARIS, contract_type="cdi")
        scores = [
            score_engine.score(
                seeker(
                    location=GeoPoint(latitude=PARIS.latitude, longitude=PARIS.longitude + step * 0.1),
                    contract_types=["cdi"],
                ),
                o,
            )
            for step in range(10)
        ]
        assert scores == sorted(scores, reverse=True)

    def test_distance_km_reads_profile_location(self, score_engine):
        requester = seeker(actor_id="rec-1", role=ActorRole.RECRUITER, location=PARIS)
        profile = seeker(location=VERSAILLES)
        target = Target(
            target_id="cand-1",
            target_type=TargetType.CANDIDATE,
            owner_id="cand-1",
            profile=profile,
        )
        assert score_engine.distance_km(requester, target) == pytest.approx(17.5, abs=2.0)


# ── Requirement factors ─────────────────────────────────────────────────────


class TestRequirementFactors:
    def test_diploma_one_level_below(self, score_engine):
        s = seeker(diploma_level="master")
        o = listing(required_diploma="doctorat")
        assert factor(score_engine.breakdown_pair(s, o), "diploma").value == 0.7
        # (0.25 + 0.15 * 0.7) / 0.40 = 0.8875
        assert score_engine.score(s, o) == 89

    def test_diploma_far_below(self, score_engine):
        s = seeker(diploma_level="bac")
        o = listing(required_diploma="doctorat")
        assert factor(score_engine.breakdown_pair(s, o), "diploma").value == 0.0

    def test_unknown_diploma_not_applicable(self, score_engine):
        s = seeker(diploma_level="unknown-school")
        o = listing(required_diploma="doctorat")
        assert not factor(score_engine.breakdown_pair(s, o), "diploma").applicable

    def test_experience_within_a_year(self, score_engine):
        s = seeker(experience_years=1)
        o = listing(required_experience_years=2)
        assert factor(score_engine.breakdown_pair(s, o), "experience").value == 0.5
        # (0.25 + 0.15 * 0.5) / 0.40 = 0.8125
        assert score_engine.score(s, o) == 81

    def test_experience_short(self, score_engine):
        s = seeker(experience_years=0)
        o = listing(required_experience_years=3)
        assert factor(score_engine.breakdown_pair(s, o), "experience").value == 0.0

    def test_specialty_overlap(self, score_engine):
        s = seeker(specialties=["dermocosmetique"])
        o = listing(
            target_type=TargetType.MISSION,
            specialties=["dermocosmetique", "nutrition"],
        )
        assert factor(score_engine.breakdown_pair(s, o), "specialties").value == 0.5
        # (0.25 + 0.10 * 0.5) / 0.35
        assert score_engine.score(s, o) == 86


# ── Mobility ────────────────────────────────────────────────────────────────


class TestMobility:
    def test_home_region(self, score_engine):
        s = seeker(region="bretagne")
        o = listing(region="bretagne")
        assert factor(score_engine.breakdown_pair(s, o), "mobility").value == 1.0

    def test_mobility_zone_partial_credit(self, score_engine):
        s = seeker(region="ile-de-france", mobility_zones=["bretagne"])
        o = listing(region="bretagne")
        assert factor(score_engine.breakdown_pair(s, o), "mobility").value == MOBILITY_ZONE_CREDIT
        # (0.25 + 0.10 * 0.6) / 0.35 = 0.8857
        assert score_engine.score(s, o) == 89

    def test_outside_zones(self, score_engine):
        s = seeker(region="ile-de-france", mobility_zones=["normandie"])
        o = listing(region="bretagne")
        assert factor(score_engine.breakdown_pair(s, o), "mobility").value == 0.0

    def test_listing_without_region_not_applicable(self, score_engine):
        s = seeker(region="ile-de-france")
        assert not factor(score_engine.breakdown_pair(s, listing()), "mobility").applicable


# ── Availability ────────────────────────────────────────────────────────────


class TestAvailability:
    def test_full_coverage(self, score_engine):
        s = seeker(
            availability=[AvailabilityWindow(start=NOW, end=NOW + timedelta(days=30))]
        )
        o = listing(
            target_type=TargetType.MISSION,
            start_date=NOW + timedelta(days=7),
            end_date=NOW + timedelta(days=9),
        )
        assert factor(score_engine.breakdown_pair(s, o, now=NOW), "availability").value == 1.0

    def test_half_coverage(self, score_engine):
        s = seeker(
            availability=[
                AvailabilityWindow(start=NOW + timedelta(days=8), end=NOW + timedelta(days=20))
            ]
        )
        o = listing(
            target_type=TargetType.MISSION,
            start_date=NOW + timedelta(days=7),
            end_date=NOW + timedelta(days=9),
        )
        assert factor(score_engine.breakdown_pair(s, o, now=NOW), "availability").value == pytest.approx(0.5)
        assert score_engine.score(s, o, now=NOW) == 86

    def test_past_part_of_window_ignored(self, score_engine):
        s = seeker(
            availability=[AvailabilityWindow(start=NOW, end=NOW + timedelta(days=2))]
        )
        o = listing(
            target_type=TargetType.MISSION,
            start_date=NOW - timedelta(days=2),
            end_date=NOW + timedelta(days=2),
        )
        assert factor(score_engine.breakdown_pair(s, o, now=NOW), "availability").value == 1.0

    def test_no_declared_availability_not_applicable(self, score_engine):
        o = listing(target_type=TargetType.MISSION, start_date=NOW)
        assert not factor(score_engine.breakdown_pair(seeker(), o), "availability").applicable


class TestAvailabilityCoverage:
    def test_overlapping_windows_not_double_counted(self):
        windows = [
            AvailabilityWindow(start=NOW, end=NOW + timedelta(days=2)),
            AvailabilityWindow(start=NOW + timedelta(days=1), end=NOW + timedelta(days=3)),
        ]
        assert availability_coverage(NOW, NOW + timedelta(days=4), windows) == pytest.approx(0.75)

    def test_disjoint_windows(self):
        windows = [
            AvailabilityWindow(start=NOW, end=NOW + timedelta(days=1)),
            AvailabilityWindow(start=NOW + timedelta(days=3), end=NOW + timedelta(days=4)),
        ]
        assert availability_coverage(NOW, NOW + timedelta(days=4), windows) == pytest.approx(0.5)

    def test_zero_length_request_inside_window(self):
        windows = [AvailabilityWindow(start=NOW, end=NOW + timedelta(days=1))]
        assert availability_coverage(NOW + timedelta(hours=1), NOW + timedelta(hours=1), windows) == 1.0

    def test_zero_length_request_outside_window(self):
        windows = [AvailabilityWindow(start=NOW, end=NOW + timedelta(days=1))]
        assert availability_coverage(NOW + timedelta(days=2), NOW + timedelta(days=2), windows) == 0.0

    def test_no_windows(self):
        assert availability_coverage(NOW, NOW + timedelta(days=1), []) == 0.0


# ── Profile targets ─────────────────────────────────────────────────────────


class TestProfileTargets:
    def test_profile_scored_against_context(self, score_engine):
        recruiter = seeker(actor_id="rec-1", role=ActorRole.RECRUITER, location=PARIS)
        candidate = seeker(location=PARIS, contract_types=["cdd"])
        target = Target(
            target_id="cand-1",
            target_type=TargetType.CANDIDATE,
            owner_id="cand-1",
            location=PARIS,
            profile=candidate,
        )
        offer = listing(location=PARIS, contract_type="cdi")
        assert score_engine.score(recruiter, target, context=offer) == score_engine.score(candidate, offer)

    def test_profile_without_context_scores_distance_only(self, score_engine):
        recruiter = seeker(actor_id="rec-1", role=ActorRole.RECRUITER, location=PARIS)
        target = Target(
            target_id="cand-1",
            target_type=TargetType.CANDIDATE,
            owner_id="cand-1",
            location=PARIS,
            profile=seeker(location=PARIS),
        )
        bd = score_engine.breakdown(recruiter, target)
        assert [f.name for f in bd.factors] == ["distance"]
        assert bd.total_score == 100
