# clinic_backend/app/schemas/availability.py
"""
Pydantic schemas for availability API.
"""

from datetime import date, datetime
from typing import Literal
from pydantic import BaseModel, Field


class SlotInfo(BaseModel):
    """A candidate start time on the grid."""
    start_at: datetime
    end_at: datetime
    available: bool

    model_config = {"from_attributes": True}


class AvailabilityDayResponse(BaseModel):
    """Slot grid of a single day."""
    mode: Literal["day"] = "day"
    date: date
    total_duration_min: int
    slot_minutes: int = Field(description="Grid step in minutes (5..60)")
    slots: list[SlotInfo]

    model_config = {"from_attributes": True}


class AvailabilityDayCount(BaseModel):
    date: date
    available_slot_count: int = 0

    model_config = {"from_attributes": True}


class AvailabilityMonthResponse(BaseModel):
    """Available slot count per day of a month."""
    mode: Literal["month"] = "month"
    month: str = Field(description="YYYY-MM")
    days: list[AvailabilityDayCount]

    model_config = {"from_attributes": True}
