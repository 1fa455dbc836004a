# clinic_backend/app/schemas/quote.py

from typing import Optional
from pydantic import BaseModel, Field

MAX_QUANTITY = 100


class ServiceSelectionIn(BaseModel):
    service_id: int
    quantity: int = Field(1, ge=1, le=MAX_QUANTITY)


class QuoteRequest(BaseModel):
    """Either bare service ids or {service_id, quantity} selections."""
    service_ids: list[int] = []
    selections: list[ServiceSelectionIn] = []

    def as_selections(self) -> list:
        if self.selections:
            return list(self.selections)
        return list(self.service_ids)


class QuoteItemRead(BaseModel):
    service_id: int
    name: str
    quantity: int
    unit_label: str
    duration_min: int
    final_price: int
    regular_price: int
    used_promotion: bool
    source_package_service_id: Optional[int] = None

    model_config = {"from_attributes": True}


class QuoteRead(BaseModel):
    items: list[QuoteItemRead]
    total_duration_min: int
    total_price: int
    currency: str

    model_config = {"from_attributes": True}
