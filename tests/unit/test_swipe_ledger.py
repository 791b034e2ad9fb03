"""
Tests for pharmatch.core.matching.swipe_ledger: SwipeLedger validation and upserts.
"""

from datetime import timedelta

import pytest
from pymongo.errors import DuplicateKeyError

from pharmatch.core.matching import (
    InvalidSwipe,
    StorageError,
    SwipeLedger,
    TargetUnavailable,
)
from pharmatch.data.repositories import SwipeRepository
from pharmatch.utils.constants import SwipeDecision, TargetStatus, TargetType


class FlakySwipeRepository(SwipeRepository):
    """Loses the first-insert race ``failures`` times before succeeding."""

    def __init__(self, collection, failures):
        super().__init__(collection=collection)
        self.failures = failures
        self.calls = 0

    def upsert_decision(self, swipe):
        self.calls += 1
        if self.calls <= self.failures:
            raise DuplicateKeyError("E11000 duplicate key error collection: swipes")
        return super().upsert_decision(swipe)


@pytest.fixture
def ledger(swipe_repo, target_repo):
    return SwipeLedger(swipe_repo, target_repo, retries=3)


# ── resolve() ───────────────────────────────────────────────────────────────


class TestResolve:
    def test_listing_is_its_own_context(self, ledger, recruiting, clock):
        resolved = ledger.resolve("cand-1", TargetType.JOB_OFFER, "offer-1", clock.now)
        assert resolved.target.target_id == "offer-1"
        assert resolved.context_id == "offer-1"

    def test_listing_accepts_matching_context(self, ledger, recruiting, clock):
        resolved = ledger.resolve("cand-1", "job_offer", "offer-1", clock.now, context_id="offer-1")
        assert resolved.context_id == "offer-1"

    def test_listing_rejects_foreign_context(self, ledger, recruiting, clock):
        with pytest.raises(InvalidSwipe, match="own context"):
            ledger.resolve("cand-1", "job_offer", "offer-1", clock.now, context_id="offer-2")

    def test_unknown_target(self, ledger, recruiting, clock):
        with pytest.raises(TargetUnavailable, match="not found"):
            ledger.resolve("cand-1", "job_offer", "offer-404", clock.now)

    def test_type_is_part_of_identity(self, ledger, recruiting, clock):
        with pytest.raises(TargetUnavailable):
            ledger.resolve("cand-1", "internship_offer", "offer-1", clock.now)

    def test_expired_target(self, ledger, recruiting, marketplace, clock):
        marketplace.listing("offer-old", "rec-1", expires_at=clock.now - timedelta(minutes=1))
        with pytest.raises(TargetUnavailable, match="no longer available"):
            ledger.resolve("cand-1", "job_offer", "offer-old", clock.now)

    def test_withdrawn_target(self, ledger, recruiting, target_repo, clock):
        target_repo.set_status(TargetType.JOB_OFFER, "offer-1", TargetStatus.WITHDRAWN)
        with pytest.raises(TargetUnavailable):
            ledger.resolve("cand-1", "job_offer", "offer-1", clock.now)

    def test_own_target(self, ledger, recruiting, clock):
        with pytest.raises(InvalidSwipe, match="own targets"):
            ledger.resolve("rec-1", "job_offer", "offer-1", clock.now)

    def test_profile_needs_context(self, ledger, recruiting, clock):
        with pytest.raises(InvalidSwipe, match="must be swiped for"):
            ledger.resolve("rec-1", "candidate", "cand-1", clock.now)

    def test_profile_with_owned_context(self, ledger, recruiting, clock):
        resolved = ledger.resolve("rec-1", "candidate", "cand-1", clock.now, context_id="offer-1")
        assert resolved.target.kind == TargetType.CANDIDATE
        assert resolved.context.kind == TargetType.JOB_OFFER

    def test_profile_with_foreign_context(self, ledger, recruiting, marketplace, clock):
        marketplace.actor("rec-2", "recruiter")
        with pytest.raises(InvalidSwipe, match="not owned"):
            ledger.resolve("rec-2", "candidate", "cand-1", clock.now, context_id="offer-1")

    def test_candidate_cannot_be_swiped_for_a_mission(self, ledger, recruiting, animation, clock):
        with pytest.raises(TargetUnavailable):
            ledger.resolve("lab-1", "candidate", "cand-1", clock.now, context_id="mission-1")

    def test_expired_context(self, ledger, recruiting, target_repo, clock):
        target_repo.set_status(TargetType.JOB_OFFER, "offer-1", TargetStatus.FILLED)
        with pytest.raises(TargetUnavailable):
            ledger.resolve("rec-1", "candidate", "cand-1", clock.now, context_id="offer-1")


# ── record() ────────────────────────────────────────────────────────────────


class TestRecord:
    def test_first_swipe(self, ledger, swipe_repo, recruiting, clock):
        result = ledger.record("cand-1", "job_offer", "offer-1", "like", clock.now)
        assert result.accepted
        assert result.previous_decision is None

        stored = swipe_repo.get_decision("cand-1", "job_offer", "offer-1", "offer-1")
        assert stored.decision == SwipeDecision.LIKE
        assert stored.context_type == TargetType.JOB_OFFER
        assert stored.swiped_at == clock.now

    def test_redecision_overwrites(self, ledger, swipe_repo, recruiting, clock):
        ledger.record("cand-1", "job_offer", "offer-1", "like", clock.now)
        later = clock.advance(hours=2)
        result = ledger.record("cand-1", "job_offer", "offer-1", "dislike", later)

        assert result.previous_decision == SwipeDecision.LIKE
        assert swipe_repo.count({"actor_id": "cand-1"}) == 1
        stored = swipe_repo.get_decision("cand-1", "job_offer", "offer-1", "offer-1")
        assert stored.decision == SwipeDecision.DISLIKE
        assert stored.swiped_at == later

    def test_replay_is_idempotent(self, ledger, swipe_repo, recruiting, clock):
        ledger.record("cand-1", "job_offer", "offer-1", "like", clock.now)
        result = ledger.record("cand-1", "job_offer", "offer-1", "like", clock.now)
        assert result.previous_decision == SwipeDecision.LIKE
        assert result.swipe.decision == SwipeDecision.LIKE
        assert swipe_repo.count({}) == 1

    def test_profile_swipe_keyed_by_context(self, ledger, swipe_repo, recruiting, marketplace, clock):
        marketplace.listing("offer-2", "rec-1")
        ledger.record("rec-1", "candidate", "cand-1", "like", clock.now, context_id="offer-1")
        ledger.record("rec-1", "candidate", "cand-1", "dislike", clock.now, context_id="offer-2")
        assert swipe_repo.count({"actor_id": "rec-1"}) == 2
        assert ledger.holds_like("rec-1", "candidate", "cand-1", "offer-1")
        assert not ledger.holds_like("rec-1", "candidate", "cand-1", "offer-2")

    def test_rejected_swipe_writes_nothing(self, ledger, swipe_repo, recruiting, clock):
        with pytest.raises(InvalidSwipe):
            ledger.record("rec-1", "job_offer", "offer-1", "like", clock.now)
        assert swipe_repo.count({}) == 0

    def test_unknown_decision(self, ledger, recruiting, clock):
        with pytest.raises(ValueError):
            ledger.record("cand-1", "job_offer", "offer-1", "maybe", clock.now)


class TestUpsertRace:
    def test_retries_after_lost_insert(self, mongo_db, target_repo, recruiting, clock):
        flaky = FlakySwipeRepository(mongo_db["swipes"], failures=2)
        ledger = SwipeLedger(flaky, target_repo, retries=3)
        result = ledger.record("cand-1", "job_offer", "offer-1", "like", clock.now)
        assert result.accepted
        assert flaky.calls == 3

    def test_gives_up_after_retries(self, mongo_db, target_repo, recruiting, clock):
        flaky = FlakySwipeRepository(mongo_db["swipes"], failures=10)
        ledger = SwipeLedger(flaky, target_repo, retries=3)
        with pytest.raises(StorageError, match="kept conflicting"):
            ledger.record("cand-1", "job_offer", "offer-1", "like", clock.now)
        assert flaky.calls == 3


# ── Reads ───────────────────────────────────────────────────────────────────


class TestReads:
    def test_superlike_is_like_class(self, ledger, recruiting, clock):
        ledger.record("cand-1", "job_offer", "offer-1", "superlike", clock.now)
        assert ledger.holds_like("cand-1", "job_offer", "offer-1", "offer-1")

    def test_dislike_is_not_like(self, ledger, recruiting, clock):
        ledger.record("cand-1", "job_offer", "offer-1", "dislike", clock.now)
        assert not ledger.holds_like("cand-1", "job_offer", "offer-1", "offer-1")

    def test_current_decision_missing(self, ledger, recruiting):
        assert ledger.current_decision("cand-1", "job_offer", "offer-1", "offer-1") is None

    def test_decisions_for_actor(self, ledger, recruiting, marketplace, clock):
        marketplace.listing("offer-2", "rec-1")
        ledger.record("cand-1", "job_offer", "offer-1", "like", clock.now)
        ledger.record("cand-1", "job_offer", "offer-2", "dislike", clock.now)
        decisions = ledger.decisions_for_actor("cand-1", TargetType.JOB_OFFER)
        assert set(decisions) == {"offer-1", "offer-2"}
        assert decisions["offer-2"].decision == SwipeDecision.DISLIKE
