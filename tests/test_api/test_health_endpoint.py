"""Tests for the health check endpoint."""

import pytest
from api.health import handler
from cashoffer.services.inspection_scheduler import INSPECTION_TIMEZONE
from cashoffer.services.valuation import MAX_WAIT_MS, MIN_WAIT_MS
from tests.utils.assertions import assert_valid_response
from tests.utils.helpers import create_vercel_request, response_json


@pytest.mark.unit
@pytest.mark.parametrize("method", ["GET", "POST"])
def test_health_ok_when_configured(method):
    response = handler(create_vercel_request(method=method, path="/api/health", token=None))

    assert_valid_response(response, 200)
    body = response_json(response)
    assert body["status"] == "ok"
    assert body["service"] == "cashoffer-backend"
    assert body["checks"]["inspections"]["timezone"] == str(INSPECTION_TIMEZONE)
    assert body["checks"]["valuation"]["wait_ms"] == [MIN_WAIT_MS, MAX_WAIT_MS]


@pytest.mark.unit
def test_health_degraded_without_service_role_key(monkeypatch):
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY")

    response = handler(create_vercel_request(method="GET", path="/api/health", token=None))

    assert_valid_response(response, 503)
    body = response_json(response)
    assert body["status"] == "degraded"
    assert body["checks"]["store"] == {"ok": False, "missing": ["SUPABASE_SERVICE_ROLE_KEY"]}
    assert body["checks"]["auth"]["ok"] is True


@pytest.mark.unit
def test_health_response_carries_correlation_id():
    response = handler(create_vercel_request(method="GET", path="/api/health", token=None))

    assert response["headers"]["X-Correlation-ID"]
