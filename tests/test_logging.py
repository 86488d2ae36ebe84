from datetime import datetime

import pytest
from loguru import logger

from lnbill_api.core.logging import bill_context, build_log_payload

METADATA = {"service_name": "lnbill-api", "environment": "test", "version": "0.1.0"}


@pytest.fixture
def captured_records():
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


def test_bill_context_binds_natural_key(captured_records) -> None:
    with bill_context("billing.example.com", "ref-1", "2026-10"):
        logger.info("Payment updated successfully")
    logger.info("Outside any bill")

    inside, outside = captured_records
    assert inside["extra"] == {"domain": "billing.example.com", "reference": "ref-1", "period": "2026-10"}
    assert outside["extra"] == {}


def test_build_log_payload_groups_bill_and_error_fields(captured_records) -> None:
    with bill_context("billing.example.com", "ref-1"):
        logger.error("Failed to update payment", error_kind="RecordNotUpdated", error="stale", severity="critical")

    payload = build_log_payload(captured_records[0], METADATA)

    assert payload["level"] == "error"
    assert payload["message"] == "Failed to update payment"
    assert payload["service"] == "lnbill-api"
    assert payload["environment"] == "test"
    assert payload["bill"] == {"domain": "billing.example.com", "reference": "ref-1"}
    assert payload["error"] == {"kind": "RecordNotUpdated", "message": "stale", "level": "critical"}
    assert "severity" not in payload
    assert "trace_id" not in payload
    assert datetime.fromisoformat(payload["timestamp"]).tzinfo is not None


def test_build_log_payload_keeps_unrelated_extras(captured_records) -> None:
    logger.info("Payment reconciliation worker started", interval_seconds=60, page_size=100)

    payload = build_log_payload(captured_records[0], METADATA)

    assert payload["interval_seconds"] == 60
    assert payload["page_size"] == 100
    assert "bill" not in payload
    assert "error" not in payload
