"""Custom assertion helpers."""

from typing import Any, Dict
import json


def assert_valid_response(response: Dict[str, Any], expected_status: int = 200) -> None:
    """Assert that a Vercel function response is valid."""
    assert 'statusCode' in response
    assert response['statusCode'] == expected_status, response.get('body')
    assert 'headers' in response
    assert 'body' in response

    # Try to parse body as JSON if content-type is JSON
    if 'application/json' in response.get('headers', {}).get('Content-Type', ''):
        try:
            json.loads(response['body'])
        except json.JSONDecodeError:
            assert False, "Response body is not valid JSON"


def assert_price_range_bounds(price_range: Any, square_feet: float) -> None:
    """Band is derived from a center within ±15% of sqft × 180, widened ±8%."""
    base = square_feet * 180 if square_feet and square_feet > 0 else 350000
    assert price_range.low < price_range.high
    assert int(base * 0.85 * 0.92) - 1 <= price_range.low <= int(base * 1.15 * 0.92) + 1
    assert int(base * 0.85 * 1.08) - 1 <= price_range.high <= int(base * 1.15 * 1.08) + 1
    assert 75 <= price_range.confidence <= 95


def assert_calculating_row(row: Dict[str, Any]) -> None:
    """A freshly submitted quote: zero amount, pending, calculating details."""
    assert row['amount'] == 0
    assert row['status'] == 'pending'
    assert row['calculation_details']['status'] == 'calculating'
    assert 'started_at' in row['calculation_details']
