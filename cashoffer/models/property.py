"""Property model - the home a seller submits for a cash offer."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class PropertyType(str, Enum):
    """Property type options offered by the details step."""
    SINGLE_FAMILY = "single_family"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    DUPLEX = "duplex"
    MOBILE_HOME = "mobile_home"
    OTHER = "other"


class PropertyCondition(str, Enum):
    """Self-reported condition from the condition step."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    NEEDS_WORK = "needs_work"


class PropertyStatus(str, Enum):
    """Listing status of a submitted property."""
    ACTIVE = "active"
    UNDER_CONTRACT = "under_contract"
    SOLD = "sold"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"


class Property(BaseModel):
    """Row in the ``properties`` table."""
    id: Optional[str] = Field(None, description="Property ID (uuid, assigned by the store)")
    user_id: Optional[str] = Field(None, description="Owning user ID")
    address: str = Field(..., description="Composed postal address")
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    bedrooms: Optional[float] = Field(None, ge=0, description="Bedroom count")
    bathrooms: Optional[float] = Field(None, ge=0, description="Bathroom count (half baths allowed)")
    square_feet: Optional[int] = Field(None, gt=0, description="Finished square footage")
    year_built: Optional[int] = Field(None, description="Construction year")
    property_type: Optional[PropertyType] = None
    lot_size: Optional[str] = Field(None, description="Free-text lot size, e.g. '0.25 acres'")
    condition: Optional[PropertyCondition] = None
    description: Optional[str] = Field(None, description="Seller notes from the condition step")
    status: PropertyStatus = Field(default=PropertyStatus.ACTIVE, description="Property status")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
