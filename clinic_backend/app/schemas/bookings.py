# clinic_backend/app/schemas/bookings.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from .quote import QuoteRead, ServiceSelectionIn


class BookingCreate(BaseModel):
    service_ids: list[int] = []
    selections: list[ServiceSelectionIn] = []

    start_at: datetime
    notes: Optional[str] = Field(None, max_length=1000)

    def as_selections(self) -> list:
        if self.selections:
            return list(self.selections)
        return list(self.service_ids)


class BookingItemRead(BaseModel):
    service_id: int
    quantity: int
    unit_label: str
    service_name_snapshot: str
    price_snapshot: int
    regular_price_snapshot: int
    duration_min_snapshot: int
    source_package_service_id: Optional[int] = None

    model_config = {"from_attributes": True}


class BookingRead(BaseModel):
    id: int

    user_id: int
    employee_id: int

    starts_at: datetime
    ends_at: datetime

    status: str
    total_price: int
    total_duration_min: int
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None

    items: list[BookingItemRead] = []

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BookingCreated(BaseModel):
    booking: BookingRead
    quote: QuoteRead


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=400)


class BookingCancelled(BaseModel):
    booking_id: int
    status: str
