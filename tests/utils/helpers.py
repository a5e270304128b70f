"""Test helper functions."""

import json
from typing import Any, Dict, Optional

from cashoffer.models.form import ContactStep
from cashoffer.services.wizard import WizardController
from tests.utils.factories import (
    create_address_step,
    create_condition_step,
    create_contact_step,
    create_details_step,
)


def create_vercel_request(
    method: str = "POST",
    path: str = "/api/quotes/submit",
    body: Dict[str, Any] = None,
    headers: Dict[str, str] = None,
    token: Optional[str] = "test-access-token",
    query: Dict[str, str] = None,
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    if headers is None:
        headers = {"content-type": "application/json"}
    if token:
        headers = {**headers, "Authorization": f"Bearer {token}"}

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": json.dumps(body) if isinstance(body, dict) else body,
        "query": query or {},
    }


def wizard_payload() -> Dict[str, Any]:
    """All four steps as the submit endpoint receives them."""
    return {
        "address": create_address_step().model_dump(),
        "details": create_details_step().model_dump(),
        "condition": create_condition_step().model_dump(),
        "contact": create_contact_step().model_dump(),
    }


def fill_wizard(wizard: WizardController, contact: Optional[ContactStep] = None) -> WizardController:
    """Advance through steps 1-3 and store step 4."""
    wizard.advance(create_address_step())
    wizard.advance(create_details_step())
    wizard.advance(create_condition_step())
    wizard.advance(contact or create_contact_step())
    return wizard


def response_json(response: Dict[str, Any]) -> Dict[str, Any]:
    return json.loads(response["body"])
