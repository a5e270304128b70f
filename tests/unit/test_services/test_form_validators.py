"""Tests for wizard step validators."""

import pytest
from datetime import date
from cashoffer.models.form import Attachment, ConditionStep, ContactStep
from cashoffer.services.form_validators import (
    MAX_ATTACHMENT_BYTES,
    parse_bathrooms,
    parse_bedrooms,
    validate_address_step,
    validate_attachment_selection,
    validate_condition_step,
    validate_contact_step,
    validate_details_step,
    validate_step,
)
from tests.utils.factories import create_address_step, create_details_step, create_contact_step

TODAY = date(2024, 12, 9)


@pytest.mark.unit
@pytest.mark.parametrize("zip_code", ["62704", "62704-1234", "00000"])
def test_valid_zip_codes_accepted(zip_code):
    assert "zip_code" not in validate_address_step(create_address_step(zip_code=zip_code))


@pytest.mark.unit
@pytest.mark.parametrize("zip_code", ["6270", "627041", "62704-12", "ABCDE", "62704 1234", " 62704", "62704\n", "62704-1234\n"])
def test_invalid_zip_codes_rejected(zip_code):
    errors = validate_address_step(create_address_step(zip_code=zip_code))

    assert errors["zip_code"] == "Please enter a valid ZIP code"


@pytest.mark.unit
def test_address_requires_every_field():
    errors = validate_address_step(create_address_step(address="  ", city="", state="", zip_code=""))

    assert set(errors) == {"address", "city", "state", "zip_code"}
    assert errors["zip_code"] == "ZIP code is required"


@pytest.mark.unit
@pytest.mark.parametrize("year", ["1800", "2024", "1995"])
def test_year_built_boundaries_accepted(year):
    assert "year_built" not in validate_details_step(create_details_step(year_built=year), today=TODAY)


@pytest.mark.unit
@pytest.mark.parametrize("year", ["1799", "2025", "abc", "nan", "inf", "1e400", "1995.5"])
def test_year_built_out_of_range_rejected(year):
    errors = validate_details_step(create_details_step(year_built=year), today=TODAY)

    assert errors["year_built"] == "Please enter a year between 1800 and 2024"


@pytest.mark.unit
@pytest.mark.parametrize("square_feet", ["0", "-10", "big", "nan", "inf", "-inf", "1e400"])
def test_square_feet_must_be_positive_number(square_feet):
    errors = validate_details_step(create_details_step(square_feet=square_feet), today=TODAY)

    assert "square_feet" in errors


@pytest.mark.unit
def test_details_rejects_unlisted_options():
    errors = validate_details_step(
        create_details_step(bedrooms="7", bathrooms="1.25", property_type="castle"),
        today=TODAY,
    )

    assert set(errors) == {"bedrooms", "bathrooms", "property_type"}


@pytest.mark.unit
def test_details_accepts_plus_options():
    assert validate_details_step(create_details_step(bedrooms="6+", bathrooms="4+"), today=TODAY) == {}


@pytest.mark.unit
def test_condition_required():
    assert validate_condition_step(ConditionStep()) == {"condition": "Please select your property condition"}
    assert validate_condition_step(ConditionStep(condition="needs_work")) == {}


@pytest.mark.unit
def test_contact_requires_timeline_only():
    errors = validate_contact_step(ContactStep())

    assert set(errors) == {"timeline"}


@pytest.mark.unit
def test_contact_rejects_malformed_phone():
    errors = validate_contact_step(create_contact_step(phone="call me maybe"))

    assert errors == {"phone": "Please enter a valid phone number"}


@pytest.mark.unit
def test_attachment_caps():
    photo = Attachment(file_name="front.jpg", size_bytes=1024)
    too_big = Attachment(file_name="plan.pdf", size_bytes=MAX_ATTACHMENT_BYTES + 1)

    assert validate_attachment_selection([photo] * 10, [photo]) == {}
    errors = validate_attachment_selection([photo] * 11, [too_big])
    assert set(errors) == {"photos", "floor_plans"}


@pytest.mark.unit
def test_validate_step_dispatch_checks_model_type():
    with pytest.raises(TypeError):
        validate_step(1, create_contact_step())
    with pytest.raises(ValueError):
        validate_step(5, create_contact_step())


@pytest.mark.unit
def test_parse_counts():
    assert parse_bedrooms("6+") == 6
    assert parse_bathrooms("2.5") == 2.5
