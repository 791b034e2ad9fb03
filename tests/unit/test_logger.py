"""
Tests for pharmatch.utils.logger: sinks, audit events and redaction.
"""

import pytest
from loguru import logger

from pharmatch.utils import logger as logger_module
from pharmatch.utils.config import AppSettings, LoggingSettings
from pharmatch.utils.logger import REDACTED, audit_log, redact, setup_logging


@pytest.fixture
def captured():
    records = []
    sink_id = logger.add(lambda message: records.append(message.record), level="INFO")
    yield records
    logger.remove(sink_id)


# ── redact() ────────────────────────────────────────────────────────────────


class TestRedact:
    def test_contact_fields_masked(self):
        details = {"actor_id": "cand-1", "email": "a@b.fr", "Phone_Number": "0600000000"}
        assert redact(details) == {
            "actor_id": "cand-1",
            "email": REDACTED,
            "Phone_Number": REDACTED,
        }

    def test_nested_values(self):
        details = {"profile": {"address": "1 rue de Rivoli"}, "items": [{"token": "t"}]}
        assert redact(details) == {"profile": {"address": REDACTED}, "items": [{"token": REDACTED}]}

    def test_scalars_untouched(self):
        assert redact("swipe") == "swipe"


# ── audit_log() ─────────────────────────────────────────────────────────────


class TestAuditLog:
    def test_binds_audit_type(self, captured):
        audit_log("quota_rejected", {"actor_id": "cand-1", "used": 1}, audit_type="QUOTA")
        record = captured[-1]
        assert record["extra"]["audit_type"] == "QUOTA"
        assert record["message"].startswith("quota_rejected | ")
        assert "cand-1" in record["message"]

    def test_details_redacted(self, captured):
        audit_log("match_created", {"actor_id": "cand-1", "email": "a@b.fr"}, audit_type="MATCH")
        assert "a@b.fr" not in captured[-1]["message"]


# ── setup_logging() ─────────────────────────────────────────────────────────


class TestSetupLogging:
    def test_audit_file_only_gets_audit_events(self, tmp_path, monkeypatch):
        settings = AppSettings(
            logging=LoggingSettings(
                file_path=tmp_path / "pharmatch.log", console_output=False, file_output=True
            )
        )
        monkeypatch.setattr(logger_module, "get_settings", lambda: settings)
        try:
            setup_logging()
            logger.info("queue built")
            audit_log("swipe_recorded", {"actor_id": "cand-1"})
            logger.complete()
        finally:
            logger.remove()

        audit = (tmp_path / "audit.log").read_text()
        assert "swipe_recorded" in audit
        assert "SWIPE" in audit
        assert "queue built" not in audit
        assert "queue built" in (tmp_path / "pharmatch.log").read_text()

    def test_no_files_when_file_output_disabled(self, tmp_path, monkeypatch):
        settings = AppSettings(
            logging=LoggingSettings(
                file_path=tmp_path / "logs" / "pharmatch.log", console_output=False, file_output=False
            )
        )
        monkeypatch.setattr(logger_module, "get_settings", lambda: settings)
        try:
            setup_logging()
            audit_log("swipe_recorded", {"actor_id": "cand-1"})
        finally:
            logger.remove()
        assert not (tmp_path / "logs").exists()
