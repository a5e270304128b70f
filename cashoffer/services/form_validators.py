"""Per-step field validation for the quote wizard.

Every validator is a pure function returning ``{field: message}``; an empty
dict means the step is valid. They are cheap enough to run on every
keystroke.
"""

import math
import re
from datetime import date
from typing import Optional, Union

from cashoffer.models.form import (
    AddressStep,
    Attachment,
    ConditionStep,
    ContactStep,
    DetailsStep,
    STEP_MODELS,
)
from cashoffer.models.property import PropertyCondition, PropertyType
from cashoffer.models.quote import Timeline

ZIP_CODE_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
PHONE_PATTERN = re.compile(r"^[\d\s\-()+]+$")

BEDROOM_OPTIONS = ("1", "2", "3", "4", "5", "6+")
BATHROOM_OPTIONS = ("1", "1.5", "2", "2.5", "3", "3.5", "4+")

MIN_YEAR_BUILT = 1800

MAX_PHOTOS = 10
MAX_FLOOR_PLANS = 1
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024

StepData = Union[AddressStep, DetailsStep, ConditionStep, ContactStep]


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _parse_number(value: str) -> Optional[float]:
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def validate_address_step(data: AddressStep) -> dict[str, str]:
    errors: dict[str, str] = {}

    if _blank(data.address):
        errors["address"] = "Property address is required"
    if _blank(data.city):
        errors["city"] = "City is required"
    if _blank(data.state):
        errors["state"] = "State is required"
    if _blank(data.zip_code):
        errors["zip_code"] = "ZIP code is required"
    elif not ZIP_CODE_PATTERN.fullmatch(data.zip_code):
        errors["zip_code"] = "Please enter a valid ZIP code"

    return errors


def validate_details_step(data: DetailsStep, today: Optional[date] = None) -> dict[str, str]:
    errors: dict[str, str] = {}
    current_year = (today or date.today()).year

    if _blank(data.bedrooms):
        errors["bedrooms"] = "Number of bedrooms is required"
    elif data.bedrooms not in BEDROOM_OPTIONS:
        errors["bedrooms"] = "Please select a listed bedroom count"

    if _blank(data.bathrooms):
        errors["bathrooms"] = "Number of bathrooms is required"
    elif data.bathrooms not in BATHROOM_OPTIONS:
        errors["bathrooms"] = "Please select a listed bathroom count"

    if _blank(data.square_feet):
        errors["square_feet"] = "Square footage is required"
    else:
        square_feet = _parse_number(data.square_feet)
        if square_feet is None or square_feet <= 0:
            errors["square_feet"] = "Please enter a valid square footage"

    if _blank(data.year_built):
        errors["year_built"] = "Year built is required"
    else:
        year = _parse_number(data.year_built)
        if year is None or not year.is_integer() or year < MIN_YEAR_BUILT or year > current_year:
            errors["year_built"] = f"Please enter a year between {MIN_YEAR_BUILT} and {current_year}"

    if _blank(data.property_type):
        errors["property_type"] = "Property type is required"
    elif data.property_type not in {t.value for t in PropertyType}:
        errors["property_type"] = "Please select a listed property type"

    return errors


def validate_condition_step(data: ConditionStep) -> dict[str, str]:
    # Attachments are capped when they are picked, not here.
    errors: dict[str, str] = {}

    if _blank(data.condition):
        errors["condition"] = "Please select your property condition"
    elif data.condition not in {c.value for c in PropertyCondition}:
        errors["condition"] = "Please select a listed property condition"

    return errors


def validate_contact_step(data: ContactStep) -> dict[str, str]:
    errors: dict[str, str] = {}

    if _blank(data.timeline):
        errors["timeline"] = "Please select your timeline"
    elif data.timeline not in {t.value for t in Timeline}:
        errors["timeline"] = "Please select a listed timeline"

    if not _blank(data.phone) and not PHONE_PATTERN.fullmatch(data.phone.strip()):
        errors["phone"] = "Please enter a valid phone number"

    return errors


def validate_attachment_selection(
    photos: list[Attachment],
    floor_plans: list[Attachment],
) -> dict[str, str]:
    """Soft caps applied when files are selected in the condition step."""
    errors: dict[str, str] = {}

    if len(photos) > MAX_PHOTOS:
        errors["photos"] = f"You can upload up to {MAX_PHOTOS} photos"
    elif any(p.size_bytes > MAX_ATTACHMENT_BYTES for p in photos):
        errors["photos"] = "Each photo must be 10MB or smaller"

    if len(floor_plans) > MAX_FLOOR_PLANS:
        errors["floor_plans"] = "You can upload one floor plan"
    elif any(f.size_bytes > MAX_ATTACHMENT_BYTES for f in floor_plans):
        errors["floor_plans"] = "The floor plan must be 10MB or smaller"

    return errors


def validate_step(step: int, data: StepData, today: Optional[date] = None) -> dict[str, str]:
    """Dispatch to the validator for ``step`` (1-4)."""
    expected = STEP_MODELS.get(step)
    if expected is None:
        raise ValueError(f"Unknown wizard step: {step}")
    if not isinstance(data, expected):
        raise TypeError(f"Step {step} expects {expected.__name__}, got {type(data).__name__}")

    if step == 1:
        return validate_address_step(data)
    if step == 2:
        return validate_details_step(data, today=today)
    if step == 3:
        return validate_condition_step(data)
    return validate_contact_step(data)


def parse_bedrooms(value: str) -> float:
    """'6+' is stored as 6."""
    return float(value.rstrip("+"))


def parse_bathrooms(value: str) -> float:
    """'4+' is stored as 4; half baths keep their fraction."""
    return float(value.rstrip("+"))
