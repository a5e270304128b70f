"""Quote models - cash-offer requests and their valuation state."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, TypeAdapter


class QuoteStatus(str, Enum):
    """Quote lifecycle. Transitions only move forward."""
    PENDING = "pending"
    CALCULATING = "calculating"
    AWAITING_INSPECTION = "awaiting_inspection"
    AWAITING_FORMAL_OFFER = "awaiting_formal_offer"
    AWAITING_CUSTOMER_REVIEW = "awaiting_customer_review"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CLOSED = "closed"

    def can_transition_to(self, target: "QuoteStatus") -> bool:
        """Check the forward-only transition table."""
        return QuoteStatus(target) in _QUOTE_TRANSITIONS[self]

    @property
    def is_calculating(self) -> bool:
        """``pending`` is treated the same as an explicit ``calculating``."""
        return self in (QuoteStatus.PENDING, QuoteStatus.CALCULATING)


_QUOTE_TRANSITIONS: dict[QuoteStatus, frozenset[QuoteStatus]] = {
    QuoteStatus.PENDING: frozenset({QuoteStatus.CALCULATING, QuoteStatus.AWAITING_INSPECTION}),
    QuoteStatus.CALCULATING: frozenset({QuoteStatus.AWAITING_INSPECTION}),
    QuoteStatus.AWAITING_INSPECTION: frozenset({QuoteStatus.AWAITING_FORMAL_OFFER}),
    QuoteStatus.AWAITING_FORMAL_OFFER: frozenset({QuoteStatus.AWAITING_CUSTOMER_REVIEW}),
    QuoteStatus.AWAITING_CUSTOMER_REVIEW: frozenset({QuoteStatus.ACCEPTED, QuoteStatus.DECLINED}),
    QuoteStatus.ACCEPTED: frozenset({QuoteStatus.CLOSED}),
    QuoteStatus.DECLINED: frozenset({QuoteStatus.CLOSED}),
    QuoteStatus.CLOSED: frozenset(),
}


class Timeline(str, Enum):
    """How soon the seller wants to close."""
    ASAP = "asap"
    DAYS_30 = "30_days"
    DAYS_60 = "60_days"
    DAYS_90 = "90_days"
    FLEXIBLE = "flexible"


class PriceRange(BaseModel):
    """Completed valuation band."""
    low: int = Field(..., gt=0, description="Lower bound of the offer range")
    high: int = Field(..., gt=0, description="Upper bound of the offer range")
    confidence: int = Field(..., ge=0, le=100, description="Confidence score (percent)")

    def model_post_init(self, __context: Any) -> None:
        if self.low >= self.high:
            raise ValueError("price_range.low must be below price_range.high")

    @property
    def midpoint(self) -> int:
        return (self.low + self.high) // 2


class CalculatingDetails(BaseModel):
    """Valuation in progress."""
    status: Literal["calculating"] = "calculating"
    started_at: datetime = Field(..., description="When the calculation (or countdown) began")
    estimated_wait_time: Optional[int] = Field(
        None,
        ge=0,
        description="Countdown length in milliseconds; null until the countdown starts"
    )

    @property
    def countdown_started(self) -> bool:
        return self.estimated_wait_time is not None

    @property
    def due_at(self) -> Optional[datetime]:
        if self.estimated_wait_time is None:
            return None
        return self.started_at + timedelta(milliseconds=self.estimated_wait_time)


class CompletedDetails(BaseModel):
    """Valuation finished; ``price_range`` is authoritative."""
    status: Literal["completed"] = "completed"
    started_at: datetime
    completed_at: datetime
    price_range: PriceRange


CalculationDetails = Annotated[
    Union[CalculatingDetails, CompletedDetails],
    Field(discriminator="status"),
]

_calculation_details_adapter = TypeAdapter(CalculationDetails)


def parse_calculation_details(
    raw: Optional[dict],
    fallback_started_at: Optional[datetime] = None,
) -> Optional[Union[CalculatingDetails, CompletedDetails]]:
    """Convert the stored JSON bag into the tagged union.

    Rows written before the bag existed have no details at all; when a
    fallback start time is given they are read as a calculation that never
    started its countdown.
    """
    if not raw:
        if fallback_started_at is None:
            return None
        return CalculatingDetails(started_at=fallback_started_at)
    return _calculation_details_adapter.validate_python(raw)


def dump_calculation_details(details: Union[CalculatingDetails, CompletedDetails]) -> dict:
    """Serialize details for the ``calculation_details`` JSON column."""
    return details.model_dump(mode="json", exclude_none=True)


class Quote(BaseModel):
    """Row in the ``quotes`` table."""
    id: Optional[str] = Field(None, description="Quote ID (uuid, assigned by the store)")
    property_id: Optional[str] = Field(None, description="Property this quote values")
    user_id: Optional[str] = Field(None, description="Requesting user")
    amount: float = Field(default=0, ge=0, description="Offer midpoint; 0 while calculating")
    status: QuoteStatus = Field(default=QuoteStatus.PENDING)
    timeline: Optional[Timeline] = None
    motivation: Optional[str] = None
    expires_at: Optional[datetime] = None
    calculation_details: Optional[CalculationDetails] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_calculating(self) -> bool:
        if isinstance(self.calculation_details, CompletedDetails):
            return False
        return self.status.is_calculating or isinstance(self.calculation_details, CalculatingDetails)

    @property
    def display_amount(self) -> Optional[float]:
        """Amount is meaningless until the calculation completes."""
        if self.is_calculating:
            return None
        return self.amount

    @property
    def price_range(self) -> Optional[PriceRange]:
        if isinstance(self.calculation_details, CompletedDetails):
            return self.calculation_details.price_range
        return None

    @classmethod
    def from_row(cls, row: dict) -> "Quote":
        """Build a Quote from a store row, tolerating rows without details."""
        data = dict(row)
        data["calculation_details"] = parse_calculation_details(
            row.get("calculation_details"),
            fallback_started_at=_parse_timestamp(row.get("created_at"))
            if QuoteStatus(row.get("status") or QuoteStatus.PENDING).is_calculating else None,
        )
        return cls.model_validate(data)


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
