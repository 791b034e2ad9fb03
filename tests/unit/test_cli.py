"""
Tests for pharmatch.cli: Typer commands wired to an in-memory engine.
"""

import pytest
from typer.testing import CliRunner

from pharmatch.cli import app
from pharmatch.utils.constants import TargetStatus

runner = CliRunner()


@pytest.fixture
def wired(monkeypatch, engine, block_repo, target_repo, match_repo):
    """Point the CLI's singletons at the mongomock-backed test objects."""
    monkeypatch.setattr("pharmatch.core.matching.get_matching_engine", lambda: engine)
    monkeypatch.setattr("pharmatch.data.repositories.get_block_repository", lambda: block_repo)
    monkeypatch.setattr("pharmatch.data.repositories.get_target_repository", lambda: target_repo)
    monkeypatch.setattr("pharmatch.data.repositories.get_match_repository", lambda: match_repo)
    return engine


class TestInfoCommands:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_info(self):
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "Superlike Fallback" in result.output


class TestSwipeCommands:
    def test_queue(self, wired, recruiting):
        result = runner.invoke(app, ["queue", "cand-1", "--kind", "job_offer"])
        assert result.exit_code == 0
        assert "offer-1" in result.output

    def test_queue_bad_sort(self, wired, recruiting):
        result = runner.invoke(app, ["queue", "cand-1", "--sort", "salary"])
        assert result.exit_code == 1

    def test_swipe_and_match(self, wired, recruiting):
        first = runner.invoke(app, ["swipe", "cand-1", "offer-1", "like"])
        assert first.exit_code == 0
        assert "Recorded like" in first.output

        second = runner.invoke(
            app, ["swipe", "rec-1", "cand-1", "like", "--kind", "candidate", "--context", "offer-1"]
        )
        assert second.exit_code == 0
        assert "It's a match!" in second.output

    def test_swipe_rejected(self, wired, recruiting):
        result = runner.invoke(app, ["swipe", "ghost", "offer-1", "like"])
        assert result.exit_code == 1
        assert "InvalidSwipe" in result.output

    def test_quota(self, wired, recruiting):
        runner.invoke(app, ["swipe", "cand-1", "offer-1", "superlike"])
        result = runner.invoke(app, ["quota", "cand-1"])
        assert result.exit_code == 0
        assert "2026-03-02" in result.output

    def test_matches_empty(self, wired, recruiting):
        result = runner.invoke(app, ["matches", "cand-1"])
        assert result.exit_code == 0
        assert "No matches found" in result.output

    def test_block_closes_matches(self, wired, recruiting):
        runner.invoke(app, ["swipe", "cand-1", "offer-1", "like"])
        runner.invoke(
            app, ["swipe", "rec-1", "cand-1", "like", "--kind", "candidate", "--context", "offer-1"]
        )
        result = runner.invoke(app, ["block", "cand-1", "rec-1"])
        assert result.exit_code == 0
        assert "Closed 1 matches" in result.output
        assert wired.get_matches("cand-1") == []

    def test_matches_lists_status_counts(self, wired, recruiting):
        runner.invoke(app, ["swipe", "cand-1", "offer-1", "like"])
        runner.invoke(
            app, ["swipe", "rec-1", "cand-1", "like", "--kind", "candidate", "--context", "offer-1"]
        )
        result = runner.invoke(app, ["matches", "cand-1"])
        assert result.exit_code == 0
        assert "rec-1" in result.output
        assert "1 active, 0 closed" in result.output

    def test_unblock(self, wired, recruiting, block_repo):
        runner.invoke(app, ["block", "cand-1", "rec-1"])
        result = runner.invoke(app, ["unblock", "cand-1", "rec-1"])
        assert result.exit_code == 0
        assert "no longer blocks" in result.output
        assert not block_repo.are_blocked("cand-1", "rec-1")

        again = runner.invoke(app, ["unblock", "cand-1", "rec-1"])
        assert "does not block" in again.output

    def test_target_status_withdraws_offer(self, wired, recruiting, target_repo):
        result = runner.invoke(app, ["target-status", "offer-1", "withdrawn"])
        assert result.exit_code == 0
        assert target_repo.get("job_offer", "offer-1").status == TargetStatus.WITHDRAWN

        swiped = runner.invoke(app, ["swipe", "cand-1", "offer-1", "like"])
        assert swiped.exit_code == 1

    def test_target_status_rejects_profiles_and_unknown(self, wired, recruiting):
        assert runner.invoke(app, ["target-status", "cand-1", "closed", "--kind", "candidate"]).exit_code == 1
        assert runner.invoke(app, ["target-status", "nope", "closed"]).exit_code == 1
        assert runner.invoke(app, ["target-status", "offer-1", "paused"]).exit_code == 1

    def test_close_expired(self, wired, recruiting, marketplace, clock):
        marketplace.listing("offer-2", "rec-1", expires_at=clock.now)
        result = runner.invoke(app, ["close-expired"])
        assert result.exit_code == 0
        assert "Closed 1 expired targets" in result.output


class ConnectedDatabase:
    def check_connection(self):
        return True


class TestHealthCheck:
    def test_reports_collection_counts(self, monkeypatch, wired, recruiting, actor_repo, swipe_repo):
        monkeypatch.setattr("pharmatch.data.database.get_database_manager", lambda: ConnectedDatabase())
        monkeypatch.setattr("pharmatch.data.repositories.get_actor_repository", lambda: actor_repo)
        monkeypatch.setattr("pharmatch.data.repositories.get_swipe_repository", lambda: swipe_repo)
        runner.invoke(app, ["swipe", "cand-1", "offer-1", "like"])

        result = runner.invoke(app, ["health-check"])
        assert result.exit_code == 0
        assert "Swipes: 1" in result.output
        assert "Matches: 0" in result.output
        assert "All critical systems operational" in result.output
