"""
Tests for structured logging helpers
"""
import json
import logging

import pytest

from zordon_hub.shared.infrastructure.logging import HubJsonFormatter, get_logger, log_latency


def make_record(**extra):
    record = logging.LogRecord("zordon_hub.test", logging.INFO, __file__, 1, "Login attempt", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestHubJsonFormatter:

    def test_secrets_are_masked(self):
        formatter = HubJsonFormatter(environment="staging")

        payload = json.loads(formatter.format(make_record(password_hash="abc", mail_api_key="k", user_id="u-1")))

        assert payload["password_hash"] == "***REDACTED***"
        assert payload["mail_api_key"] == "***REDACTED***"
        assert payload["user_id"] == "u-1"
        assert payload["environment"] == "staging"
        assert payload["message"] == "Login attempt"

    def test_correlation_id_is_carried(self):
        formatter = HubJsonFormatter()

        payload = json.loads(formatter.format(make_record(correlation_id="c0ffee")))

        assert payload["correlation_id"] == "c0ffee"
        assert "timestamp" in payload


class TestLogLatency:

    def test_success_outcome(self, caplog):
        logger = get_logger("zordon_hub.test.latency")

        with caplog.at_level(logging.INFO, logger="zordon_hub.test.latency"):
            with log_latency(logger, "deadline_sweep", window_hours=6):
                pass

        record = caplog.records[-1]
        assert record.operation == "deadline_sweep"
        assert record.outcome == "ok"
        assert record.window_hours == 6

    def test_failure_is_logged_and_reraised(self, caplog):
        logger = get_logger("zordon_hub.test.latency")

        with caplog.at_level(logging.INFO, logger="zordon_hub.test.latency"):
            with pytest.raises(RuntimeError):
                with log_latency(logger, "workload_sync"):
                    raise RuntimeError("database unavailable")

        assert caplog.records[-1].outcome == "failed"
