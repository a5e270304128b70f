"""Tests for structured logging helpers."""

import logging
import pytest
from cashoffer.utils.logging import (
    correlation_context,
    get_correlation_id,
    get_structured_logger,
    log_timing,
    mask_email,
    mask_sensitive_data,
    mask_user_id,
    sanitize_free_text,
)


@pytest.mark.unit
def test_correlation_context_restores_previous_id():
    with correlation_context("req_outer"):
        with correlation_context() as inner:
            assert get_correlation_id() == inner
            assert inner.startswith("req_")
        assert get_correlation_id() == "req_outer"


@pytest.mark.unit
def test_mask_user_id():
    masked = mask_user_id("3f1c9a2e-5b7d-4e8f-9a1b-2c3d4e5f6a7b")

    assert masked.startswith("3f1c...")
    assert len(masked) == 15
    assert mask_user_id(None) is None


@pytest.mark.unit
def test_mask_email():
    assert mask_email("seller@example.com") == "s***@example.com"


@pytest.mark.unit
def test_mask_sensitive_data_in_free_text():
    text = mask_sensitive_data("Call me at (555) 123-4567 or mail jo@example.com")

    assert "[REDACTED_PHONE]" in text
    assert "[REDACTED_EMAIL]" in text


@pytest.mark.unit
def test_sanitize_free_text_truncates():
    assert sanitize_free_text("x" * 300, max_length=10) == "xxxxxxxxxx..."


@pytest.mark.unit
def test_structured_logger_renames_reserved_keys(caplog):
    logger = get_structured_logger("tests.logging")

    with caplog.at_level(logging.INFO, logger="tests.logging"):
        with correlation_context("req_test"):
            logger.info("Hello", name="reserved", quote_id="q-1")

    record = caplog.records[-1]
    assert record.field_name == "reserved"
    assert record.quote_id == "q-1"
    assert record.correlation_id == "req_test"


@pytest.mark.unit
def test_log_timing_emits_duration(caplog):
    logger = get_structured_logger("tests.timing")

    with caplog.at_level(logging.DEBUG, logger="tests.timing"):
        with log_timing("unit_op", logger=logger, quote_id="q-1"):
            pass

    completed = [r for r in caplog.records if r.getMessage() == "Completed unit_op"]
    assert completed and completed[0].processing_time_ms >= 0
