"""Wizard step payloads.

Values arrive exactly as the browser form holds them (strings), so numeric
fields are parsed only when the submission pipeline builds store rows.
"""

from typing import Optional
from pydantic import BaseModel, Field


class AddressStep(BaseModel):
    """Step 1 - where the property is."""
    address: str = Field("", description="Street address")
    city: str = ""
    state: str = Field("", description="Two-letter state code")
    zip_code: str = Field("", description="5 or 5+4 digit ZIP code")


class DetailsStep(BaseModel):
    """Step 2 - size and type."""
    bedrooms: str = Field("", description="Option value: 1-5 or '6+'")
    bathrooms: str = Field("", description="Option value: 1-3.5 or '4+'")
    square_feet: str = ""
    year_built: str = ""
    property_type: str = ""
    lot_size: str = Field("", description="Free text, e.g. '7,500 sq ft'")


class Attachment(BaseModel):
    """A file picked in the condition step."""
    file_name: str
    size_bytes: int = Field(..., ge=0)
    content_type: Optional[str] = None


class ConditionStep(BaseModel):
    """Step 3 - condition, notes and optional media."""
    condition: str = ""
    additional_notes: str = ""
    photos: list[Attachment] = Field(default_factory=list)
    floor_plans: list[Attachment] = Field(default_factory=list)


class ContactStep(BaseModel):
    """Step 4 - contact preferences."""
    phone: str = ""
    timeline: str = ""
    motivation: str = ""


STEP_NAMES = {
    1: "address",
    2: "details",
    3: "condition",
    4: "contact",
}

STEP_MODELS = {
    1: AddressStep,
    2: DetailsStep,
    3: ConditionStep,
    4: ContactStep,
}


class QuoteRequestForm(BaseModel):
    """Accumulated wizard state; each step is filled in as it validates."""
    address: Optional[AddressStep] = None
    details: Optional[DetailsStep] = None
    condition: Optional[ConditionStep] = None
    contact: Optional[ContactStep] = None

    def missing_steps(self) -> list[str]:
        return [name for name in STEP_NAMES.values() if getattr(self, name) is None]

    @property
    def is_complete(self) -> bool:
        return not self.missing_steps()
