# clinic_backend/app/schemas/blocks.py

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class BlockCreate(BaseModel):
    starts_at: datetime
    duration_min: int = Field(ge=5, le=12 * 60)
    note: Optional[str] = Field(None, max_length=1000)


class BlockRead(BaseModel):
    id: int
    employee_id: int

    starts_at: datetime
    ends_at: datetime
    duration_min: int

    note: Optional[str] = None
    created_by_user_id: Optional[int] = None

    created_at: datetime

    model_config = {"from_attributes": True}
