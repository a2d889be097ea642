"""Tests for the JSON log formatter."""
import json
import logging

from rewards.core.logging import JsonFormatter


class TestJsonFormatter:
    def test_whitelisted_extras_only(self):
        record = logging.LogRecord("payouts", logging.WARNING, __file__, 1, "hackatime_fetch_failed", None, None)
        record.slack_id = "U1"
        record.status_code = 500
        record.secret = "nope"

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "hackatime_fetch_failed"
        assert payload["level"] == "WARNING"
        assert payload["slack_id"] == "U1"
        assert payload["status_code"] == 500
        assert "secret" not in payload

    def test_service_name_stamped(self):
        record = logging.LogRecord("payouts", logging.INFO, __file__, 1, "payout_plan_computed", None, None)

        payload = json.loads(JsonFormatter(service="who-got-money").format(record))

        assert payload["service"] == "who-got-money"

    def test_no_service_by_default(self):
        record = logging.LogRecord("payouts", logging.INFO, __file__, 1, "x", None, None)

        assert "service" not in json.loads(JsonFormatter().format(record))
