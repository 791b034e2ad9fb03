#!/usr/bin/env python3
"""
Demo script for the swipe matching engine.
Seeds a small marketplace into the configured MongoDB and plays a few swipes.
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

DEMO_ACTORS = ["demo-cand", "demo-student", "demo-rec", "demo-anim", "demo-lab"]


def seed_marketplace():
    """Store demo actors, their profiles and a few listings."""
    from pharmatch.data.models import Actor, AvailabilityWindow, GeoPoint, Target, utcnow
    from pharmatch.data.repositories import get_actor_repository, get_target_repository
    from pharmatch.utils.constants import ActorRole, TargetType

    actors = get_actor_repository()
    targets = get_target_repository()
    now = utcnow()

    paris = GeoPoint(latitude=48.8566, longitude=2.3522)
    versailles = GeoPoint(latitude=48.8049, longitude=2.1204)
    lyon = GeoPoint(latitude=45.7640, longitude=4.8357)

    people = [
        Actor(
            actor_id="demo-cand",
            role=ActorRole.CANDIDATE,
            display_name="Camille",
            location=paris,
            region="ile-de-france",
            contract_types=["cdi"],
            diploma_level="doctorat",
            experience_years=4,
        ),
        Actor(
            actor_id="demo-student",
            role=ActorRole.STUDENT,
            display_name="Sacha",
            location=versailles,
            region="ile-de-france",
            contract_types=["alternance"],
            diploma_level="licence",
        ),
        Actor(actor_id="demo-rec", role=ActorRole.RECRUITER, display_name="Pharmacie du Centre"),
        Actor(
            actor_id="demo-anim",
            role=ActorRole.ANIMATOR,
            display_name="Alex",
            location=lyon,
            region="auvergne-rhone-alpes",
            specialties=["dermocosmetique", "nutrition"],
            availability=[AvailabilityWindow(start=now, end=now + timedelta(days=30))],
        ),
        Actor(actor_id="demo-lab", role=ActorRole.LABORATORY, display_name="Laboratoire Demo"),
    ]

    for actor in people:
        actors.save(actor)
        if actor.role in (ActorRole.CANDIDATE, ActorRole.STUDENT):
            profile_type = TargetType.CANDIDATE
        elif actor.role == ActorRole.ANIMATOR:
            profile_type = TargetType.ANIMATOR
        else:
            continue
        targets.save(
            Target(
                target_id=actor.actor_id,
                target_type=profile_type,
                owner_id=actor.actor_id,
                title=actor.display_name,
                location=actor.location,
                region=actor.region,
                profile=actor,
            )
        )

    listings = [
        Target(
            target_id="demo-offer-cdi",
            target_type=TargetType.JOB_OFFER,
            owner_id="demo-rec",
            title="Pharmacien adjoint CDI",
            location=paris,
            region="ile-de-france",
            contract_type="cdi",
            required_diploma="doctorat",
            required_experience_years=2,
        ),
        Target(
            target_id="demo-offer-cdd",
            target_type=TargetType.JOB_OFFER,
            owner_id="demo-rec",
            title="Preparateur CDD",
            location=lyon,
            region="auvergne-rhone-alpes",
            contract_type="cdd",
            required_diploma="deust",
        ),
        Target(
            target_id="demo-mission",
            target_type=TargetType.MISSION,
            owner_id="demo-lab",
            title="Animation dermocosmetique",
            location=lyon,
            region="auvergne-rhone-alpes",
            specialties=["dermocosmetique"],
            start_date=now + timedelta(days=3),
            end_date=now + timedelta(days=5),
        ),
    ]
    for listing in listings:
        targets.save(listing)

    print(f"  Seeded {len(people)} actors and {len(listings)} listings")


def reset_demo():
    """Remove swipes, matches, quotas and blocks left by a previous run."""
    from pharmatch.data.database import BLOCKS, MATCHES, QUOTAS, SWIPES, get_db

    db = get_db()
    removed = db[SWIPES].delete_many({"actor_id": {"$in": DEMO_ACTORS}}).deleted_count
    removed += db[MATCHES].delete_many({"actor_a": {"$in": DEMO_ACTORS}}).deleted_count
    removed += db[QUOTAS].delete_many({"actor_id": {"$in": DEMO_ACTORS}}).deleted_count
    removed += db[BLOCKS].delete_many({"blocker_id": {"$in": DEMO_ACTORS}}).deleted_count
    print(f"  Removed {removed} documents from previous runs")


def show_queue(engine, actor_id, kind, context_id=None):
    """Print the queue of an actor."""
    from pharmatch.core.matching import QueueFilters

    entries = engine.get_queue(actor_id, kind, QueueFilters(context_id=context_id))
    print(f"\n{'Rank':<5} {'Target':<18} {'Score':<7} {'Distance'}")
    print("-" * 45)
    for i, entry in enumerate(entries, 1):
        distance = f"{entry.distance_km:.1f} km" if entry.distance_km is not None else "-"
        print(f"{i:<5} {entry.target_id:<18} {entry.score:<7} {distance}")
    if not entries:
        print("  (empty queue)")


def play(engine, actor_id, kind, target_id, decision, context_id=None):
    """Record one swipe and print what happened."""
    from pharmatch.core.matching import MatchingError

    label = f"{actor_id} -> {target_id} ({decision})"
    try:
        result = engine.swipe(actor_id, kind, target_id, decision, context_id=context_id)
    except MatchingError as e:
        print(f"  {label}: refused [{type(e).__name__}] {e.message}")
        return None

    line = f"  {label}: recorded {result.decision}"
    if result.downgraded:
        line += " (downgraded)"
    if result.quota_remaining is not None:
        line += f", superlikes left: {result.quota_remaining}"
    print(line)
    if result.matched:
        print(f"  ** Match {result.match.match_id} on {result.match.context_target_id} (score {result.match.score})")
    return result


def run_recruiting(engine):
    print("\n--- RECRUITING ---")
    show_queue(engine, "demo-cand", "job_offer")
    play(engine, "demo-cand", "job_offer", "demo-offer-cdi", "superlike")
    play(engine, "demo-cand", "job_offer", "demo-offer-cdd", "dislike")
    # Second superlike of the day exceeds the free allowance
    play(engine, "demo-cand", "job_offer", "demo-offer-cdd", "superlike")

    show_queue(engine, "demo-rec", "candidate", context_id="demo-offer-cdi")
    play(engine, "demo-rec", "candidate", "demo-cand", "like", context_id="demo-offer-cdi")
    play(engine, "demo-rec", "candidate", "demo-student", "dislike", context_id="demo-offer-cdi")


def run_animation(engine):
    print("\n--- ANIMATION ---")
    show_queue(engine, "demo-anim", "mission")
    play(engine, "demo-anim", "mission", "demo-mission", "like")
    play(engine, "demo-lab", "animator", "demo-anim", "like", context_id="demo-mission")


def summary(engine):
    print("\n" + "=" * 60)
    print("MATCHES")
    print("=" * 60)
    for actor_id in ("demo-cand", "demo-anim"):
        for match in engine.get_matches(actor_id):
            print(f"  {match.actor_a} <-> {match.actor_b} via {match.context_target_id} (score {match.score})")


def main():
    parser = argparse.ArgumentParser(description="Swipe Matching Demo")
    parser.add_argument("--skip-seed", action="store_true", help="Reuse the stored demo marketplace")
    parser.add_argument("--no-reset", action="store_true", help="Keep swipes and matches from previous runs")
    parser.add_argument(
        "--scenario",
        choices=["recruiting", "animation", "all"],
        default="all",
    )

    args = parser.parse_args()

    from pharmatch.utils.logger import setup_logging

    setup_logging()

    print("\n" + "=" * 60)
    print("PharMatch: Swipe Matching Demo")
    print("=" * 60)

    try:
        from pharmatch.core.matching import get_matching_engine
        from pharmatch.data.database import get_database_manager

        manager = get_database_manager()
        if not manager.check_connection():
            print("Could not reach MongoDB, check the DB_* settings.")
            sys.exit(1)
        manager.ensure_indexes()

        if not args.skip_seed:
            seed_marketplace()
        if not args.no_reset:
            reset_demo()

        engine = get_matching_engine()
        if args.scenario in ("recruiting", "all"):
            run_recruiting(engine)
        if args.scenario in ("animation", "all"):
            run_animation(engine)
        summary(engine)

    except KeyboardInterrupt:
        print("\nInterrupted.")
    except Exception as e:
        print(f"Error: {e}")
        raise


if __name__ == "__main__":
    main()
