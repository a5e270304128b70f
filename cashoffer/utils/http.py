"""Shared plumbing for the Vercel handlers in ``api/``."""

import asyncio
import json
from typing import Any, Awaitable, Optional

from pydantic import ValidationError

from cashoffer.utils.errors import (
    IdentityError,
    PreconditionError,
    PropertyCreationError,
    QuoteCreationError,
    SchedulingError,
    StepValidationError,
)
from cashoffer.utils.logging import get_correlation_id, get_structured_logger

logger = get_structured_logger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


def run(coro: Awaitable) -> Any:
    """Run a coroutine on the handler's event loop."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = None
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


def json_response(status_code: int, payload: dict) -> dict:
    headers = dict(JSON_HEADERS)
    correlation_id = get_correlation_id()
    if correlation_id:
        headers["X-Correlation-ID"] = correlation_id
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": json.dumps(payload, default=str),
    }


def get_header(request: dict, name: str) -> Optional[str]:
    headers = request.get("headers") or {}
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


def bearer_token(request: dict) -> Optional[str]:
    """Token from ``Authorization: Bearer <token>``."""
    value = get_header(request, "Authorization") or ""
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def parse_body(request: dict) -> dict:
    """Decode the JSON body; raises StepValidationError for malformed input."""
    body = request.get("body")
    if body is None or body == "":
        return {}
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8")
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            raise StepValidationError({"body": "Request body must be valid JSON"}) from None
    if not isinstance(body, dict):
        raise StepValidationError({"body": "Request body must be a JSON object"})
    return body


def query_param(request: dict, name: str, default: Optional[str] = None) -> Optional[str]:
    query = request.get("query", {}) or {}
    value = query.get(name, default)
    if isinstance(value, list):
        value = value[0] if value else default
    return value


def error_response(error: Exception) -> dict:
    """Map the error taxonomy onto HTTP status codes."""
    if isinstance(error, StepValidationError):
        return json_response(400, {"error": str(error), "errors": error.errors, "step": error.step})
    if isinstance(error, ValidationError):
        return json_response(400, {
            "error": "Invalid request",
            "errors": {".".join(str(p) for p in e["loc"]): e["msg"] for e in error.errors()},
        })
    if isinstance(error, PreconditionError):
        status = 401 if "authentication" in error.missing else 409
        return json_response(status, {"error": str(error), "missing": error.missing})
    if isinstance(error, IdentityError):
        return json_response(401, {"error": str(error), "reason": error.reason})
    if isinstance(error, QuoteCreationError):
        return json_response(502, {
            "error": str(error),
            "property_id": error.property_id,
            "orphaned_property_id": error.orphaned_property_id,
        })
    if isinstance(error, (PropertyCreationError, SchedulingError)):
        return json_response(502, {"error": str(error)})

    logger.error("Unhandled error in handler", error=str(error), error_type=type(error).__name__, exc_info=True)
    return json_response(500, {"error": "Internal server error"})
