"""
Shared test fixtures for the PharMatch test suite.

Sets environment variables before any pharmatch imports to prevent config
failures, then provides mongomock-backed repositories, a controllable
clock and factory fixtures for actors and targets.
"""

import os

# === Set environment BEFORE any pharmatch imports ===
os.environ.setdefault("APP_ENVIRONMENT", "testing")
os.environ.setdefault("DB_NAME", "pharmatch_test")
os.environ.setdefault("LOG_FILE_OUTPUT", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta
from typing import Any, Optional

import mongomock
import pytest

from pharmatch.core.matching import MatchingEngine
from pharmatch.data.database import (
    ACTORS,
    BLOCKS,
    MATCHES,
    QUOTAS,
    SWIPES,
    TARGETS,
    ensure_indexes,
)
from pharmatch.data.models import (
    Actor,
    AvailabilityWindow,
    GeoPoint,
    Match,
    Target,
)
from pharmatch.data.repositories import (
    ActorRepository,
    BlockRepository,
    MatchRepository,
    QuotaRepository,
    SwipeRepository,
    TargetRepository,
)
from pharmatch.utils.config import MatchingSettings
from pharmatch.utils.constants import (
    ActorRole,
    SubscriptionTier,
    TargetStatus,
    TargetType,
)

# Reference instant for every test; whole seconds so BSON round-trips are exact
NOW = datetime(2026, 3, 2, 9, 30, 0)

# Paris (Pharmacie du Louvre area) and a few reference points
PARIS = GeoPoint(latitude=48.8606, longitude=2.3376)
VERSAILLES = GeoPoint(latitude=48.8049, longitude=2.1204)
LYON = GeoPoint(latitude=45.7640, longitude=4.8357)


# ---------------------------------------------------------------------------
# Clock and notifications
# ---------------------------------------------------------------------------


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingNotifier:
    """Notification service that remembers every match it receives."""

    def __init__(self, fail: bool = False):
        self.received: list[Match] = []
        self.fail = fail

    def on_match_created(self, match: Match) -> None:
        self.received.append(match)
        if self.fail:
            raise RuntimeError("push gateway unavailable")


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


# ---------------------------------------------------------------------------
# Storage (mongomock)
# ---------------------------------------------------------------------------


@pytest.fixture
def mongo_db():
    """Fresh in-memory database with the engine's indexes."""
    db = mongomock.MongoClient()["pharmatch_test"]
    ensure_indexes(db)
    return db


@pytest.fixture
def actor_repo(mongo_db):
    return ActorRepository(collection=mongo_db[ACTORS])


@pytest.fixture
def target_repo(mongo_db):
    return TargetRepository(collection=mongo_db[TARGETS])


@pytest.fixture
def swipe_repo(mongo_db):
    return SwipeRepository(collection=mongo_db[SWIPES])


@pytest.fixture
def match_repo(mongo_db):
    return MatchRepository(collection=mongo_db[MATCHES])


@pytest.fixture
def quota_repo(mongo_db):
    return QuotaRepository(collection=mongo_db[QUOTAS])


@pytest.fixture
def block_repo(mongo_db):
    return BlockRepository(collection=mongo_db[BLOCKS])


@pytest.fixture
def matching_settings():
    """Engine settings independent of the environment."""
    return MatchingSettings(
        max_radius_km=50.0,
        resurface_cooldown_days=7.0,
        superlike_fallback="reject",
        default_queue_limit=20,
    )


@pytest.fixture
def engine(
    actor_repo,
    target_repo,
    swipe_repo,
    match_repo,
    quota_repo,
    block_repo,
    notifier,
    matching_settings,
    clock,
):
    """MatchingEngine wired to mongomock repositories and a frozen clock."""
    return MatchingEngine(
        profiles=actor_repo,
        offers=target_repo,
        swipes=swipe_repo,
        matches=match_repo,
        quotas=quota_repo,
        blocks=block_repo,
        notifier=notifier,
        settings=matching_settings,
        clock=clock,
    )


# ---------------------------------------------------------------------------
# Factory fixtures for models
# ---------------------------------------------------------------------------


@pytest.fixture
def make_actor():
    """Factory that returns a callable to build Actor models."""

    def _factory(
        actor_id: str = "cand-1",
        role: ActorRole = ActorRole.CANDIDATE,
        tier: SubscriptionTier = SubscriptionTier.FREE,
        location: Optional[GeoPoint] = PARIS,
        region: Optional[str] = "ile-de-france",
        **kwargs: Any,
    ) -> Actor:
        return Actor(
            actor_id=actor_id,
            role=role,
            tier=tier,
            location=location,
            region=region,
            **kwargs,
        )

    return _factory


@pytest.fixture
def make_target():
    """Factory that returns a callable to build Target models."""

    def _factory(
        target_id: str = "offer-1",
        target_type: TargetType = TargetType.JOB_OFFER,
        owner_id: str = "rec-1",
        location: Optional[GeoPoint] = PARIS,
        region: Optional[str] = "ile-de-france",
        status: TargetStatus = TargetStatus.ACTIVE,
        created_at: datetime = NOW - timedelta(days=1),
        **kwargs: Any,
    ) -> Target:
        return Target(
            target_id=target_id,
            target_type=target_type,
            owner_id=owner_id,
            location=location,
            region=region,
            status=status,
            created_at=created_at,
            **kwargs,
        )

    return _factory


@pytest.fixture
def marketplace(actor_repo, target_repo, make_actor, make_target):
    """
    Helper that stores actors and targets the way the marketplace would.

    Profile targets are published for candidates and animators so that
    recruiters and laboratories can swipe them.
    """

    class Marketplace:
        def actor(self, actor_id: str, role: ActorRole, **kwargs: Any) -> Actor:
            actor = actor_repo.save(make_actor(actor_id=actor_id, role=role, **kwargs))
            if role in (ActorRole.CANDIDATE, ActorRole.STUDENT):
                self.profile(actor, TargetType.CANDIDATE)
            elif role == ActorRole.ANIMATOR:
                self.profile(actor, TargetType.ANIMATOR)
            return actor

        def profile(self, actor: Actor, target_type: TargetType) -> Target:
            return target_repo.save(
                make_target(
                    target_id=actor.actor_id,
                    target_type=target_type,
                    owner_id=actor.actor_id,
                    location=actor.location,
                    region=actor.region,
                    profile=actor,
                )
            )

        def listing(
            self,
            target_id: str,
            owner_id: str,
            target_type: TargetType = TargetType.JOB_OFFER,
            **kwargs: Any,
        ) -> Target:
            return target_repo.save(
                make_target(
                    target_id=target_id,
                    target_type=target_type,
                    owner_id=owner_id,
                    **kwargs,
                )
            )

    return Marketplace()


@pytest.fixture
def recruiting(marketplace):
    """Candidate C, recruiter R and R's job offer O in Paris."""
    candidate = marketplace.actor(
        "cand-1",
        ActorRole.CANDIDATE,
        contract_types=["cdi"],
        diploma_level="doctorat",
        experience_years=4,
    )
    recruiter = marketplace.actor("rec-1", ActorRole.RECRUITER)
    offer = marketplace.listing(
        "offer-1",
        recruiter.actor_id,
        title="Pharmacien adjoint",
        contract_type="cdi",
        required_diploma="doctorat",
        required_experience_years=2,
    )
    return candidate, recruiter, offer


@pytest.fixture
def animation(marketplace):
    """Animator X, laboratory L and L's mission M."""
    animator = marketplace.actor(
        "anim-1",
        ActorRole.ANIMATOR,
        specialties=["dermocosmetique", "nutrition"],
        availability=[
            AvailabilityWindow(start=NOW + timedelta(days=5), end=NOW + timedelta(days=20)),
        ],
    )
    laboratory = marketplace.actor("lab-1", ActorRole.LABORATORY)
    mission = marketplace.listing(
        "mission-1",
        laboratory.actor_id,
        target_type=TargetType.MISSION,
        title="Animation dermocosmetique",
        specialties=["dermocosmetique"],
        start_date=NOW + timedelta(days=7),
        end_date=NOW + timedelta(days=9),
    )
    return animator, laboratory, mission
