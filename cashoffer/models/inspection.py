"""Property inspection model."""

from datetime import time
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class InspectionStatus(str, Enum):
    """Inspection lifecycle."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TimeSlot(str, Enum):
    """Time-of-day slots offered to the seller."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def start_time(self) -> time:
        return _SLOT_START_TIMES[self]

    @property
    def label(self) -> str:
        return f"{self.value} ({self.start_time.strftime('%I:%M %p').lstrip('0')})"


_SLOT_START_TIMES = {
    TimeSlot.MORNING: time(9, 0),
    TimeSlot.AFTERNOON: time(14, 0),
    TimeSlot.EVENING: time(17, 0),
}


class PropertyInspection(BaseModel):
    """Row in the ``property_inspections`` table."""
    id: Optional[str] = None
    property_id: str = Field(..., description="Inspected property")
    inspector_id: Optional[str] = Field(None, description="Assigned inspector, set outside this service")
    scheduled_date: str = Field(..., description="ISO timestamp of the visit")
    completed_date: Optional[str] = None
    status: InspectionStatus = Field(default=InspectionStatus.SCHEDULED)
    notes: Optional[str] = Field(None, description="Access notes from the seller")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
