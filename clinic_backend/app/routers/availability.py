# clinic_backend/app/routers/availability.py
"""
Availability API endpoint.

GET /availability?date=YYYY-MM-DD&service_ids=1,2 - slot grid of a day
GET /availability?month=YYYY-MM&service_ids=1,2   - available count per day
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.availability import AvailabilityDayResponse, AvailabilityMonthResponse
from ..services.booking import (
    get_availability_for_day,
    get_availability_for_month,
    get_clinic_settings,
    get_default_employee,
    required_duration,
)
from ..services.booking.errors import InvalidAvailabilityQuery, InvalidServiceSelection

router = APIRouter(prefix="/availability", tags=["availability"])


def parse_service_ids(raw: str | None) -> list[int]:
    """Comma-separated ids -> list of ints, blanks dropped."""
    ids = []
    for part in (raw or "").split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise InvalidServiceSelection(f"Invalid service id: {part!r}")
        ids.append(int(part))
    return ids


@router.get("", response_model=AvailabilityDayResponse | AvailabilityMonthResponse)
def get_availability(
    target_date: date | None = Query(None, alias="date"),
    month: str | None = Query(None),
    service_ids: str | None = Query(None),
    db: Session = Depends(get_db),
):
    """Slot grid for a date, or per-day counts for a month (exactly one)."""
    if (target_date is None) == (month is None):
        raise InvalidAvailabilityQuery("Provide either date=YYYY-MM-DD or month=YYYY-MM.")

    selections = parse_service_ids(service_ids)
    config = get_clinic_settings(db)
    duration_min = required_duration(db, selections, config)
    employee = get_default_employee(db)

    if month is not None:
        result = get_availability_for_month(db, month, duration_min, employee.id, config=config)
        return AvailabilityMonthResponse(**result)

    result = get_availability_for_day(db, target_date, duration_min, employee.id, config=config)
    return AvailabilityDayResponse(**result)
