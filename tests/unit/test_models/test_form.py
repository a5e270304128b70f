"""Tests for wizard form and inspection models."""

import pytest
from datetime import time
from cashoffer.models.form import QuoteRequestForm
from cashoffer.models.inspection import TimeSlot
from cashoffer.models.session import UserSession
from tests.utils.factories import create_address_step, create_complete_form


@pytest.mark.unit
def test_empty_form_reports_all_steps_missing():
    form = QuoteRequestForm()

    assert form.missing_steps() == ["address", "details", "condition", "contact"]
    assert not form.is_complete


@pytest.mark.unit
def test_partial_form_reports_first_missing_step_first():
    form = QuoteRequestForm(address=create_address_step())

    assert form.missing_steps()[0] == "details"


@pytest.mark.unit
def test_complete_form():
    assert create_complete_form().is_complete


@pytest.mark.unit
@pytest.mark.parametrize("slot,start", [
    (TimeSlot.MORNING, time(9, 0)),
    (TimeSlot.AFTERNOON, time(14, 0)),
    (TimeSlot.EVENING, time(17, 0)),
])
def test_time_slot_start_times(slot, start):
    assert slot.start_time == start


@pytest.mark.unit
def test_time_slot_label():
    assert TimeSlot.AFTERNOON.label == "afternoon (2:00 PM)"


@pytest.mark.unit
def test_session_verification_flag():
    assert not UserSession(user_id="u-1").is_verified
