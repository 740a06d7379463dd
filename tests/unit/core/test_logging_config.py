from __future__ import annotations

import json
import logging

from jobline.core.logging import LogContext, build_log_event
from jobline.core.logging_config import JsonFormatter


def _record(**extra):
    record = logging.LogRecord("jobline.test", logging.INFO, __file__, 1, "ledger.job_paid.recorded", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_structured_extras():
    payload = json.loads(JsonFormatter().format(_record(event="ledger.job_paid.recorded", job_id=12)))

    assert payload["message"] == "ledger.job_paid.recorded"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "jobline.test"
    assert payload["event"] == "ledger.job_paid.recorded"
    assert payload["job_id"] == 12
    assert "msecs" not in payload


def test_build_log_event_merges_context_and_fields():
    event = build_log_event(
        "callout.fee_paid",
        LogContext(partner_id=4, callout_id=9, actor="finance"),
        fee_amount="60.00",
    )

    assert event["event"] == "callout.fee_paid"
    assert event["partner_id"] == 4
    assert event["callout_id"] == 9
    assert event["job_id"] is None
    assert event["fee_amount"] == "60.00"
