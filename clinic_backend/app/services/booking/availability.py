# clinic_backend/app/services/booking/availability.py
"""
Slot availability for a required duration.

Day mode: every start from workday_start stepping slot_minutes while
start + duration still ends by workday_end. Starts that would run past
closing are left out of the grid entirely, not marked unavailable.

A slot is available when:
✓ it overlaps no pending/confirmed booking and no block
✓ it starts after `now`
✓ it starts within the booking window

Month mode collapses each day of the month to its available count.
Occupied intervals are fetched once per request and sliced per slot.
"""

import calendar
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.orm import Session

from .config import ClinicConfig, ensure_utc, get_clinic_settings
from .conflicts import OccupiedInterval, load_occupied_intervals, overlapping
from .errors import InvalidAvailabilityQuery
from .quote import resolve_quote

# Longest wall-clock span a workday can have: 00:00-24:00 plus a DST fall-back hour
MAX_WORKDAY_MINUTES = 25 * 60


def build_day_slots(
    target_date: date,
    duration_min: int,
    config: ClinicConfig,
    occupied: list[OccupiedInterval],
    now: datetime,
) -> list[dict]:
    """
    Generate the slot grid for one local day.

    Returns:
        List of {"start_at", "end_at", "available"} in chronological order.
        Empty list when the workday is inverted or shorter than duration.
    """
    if not 1 <= duration_min <= MAX_WORKDAY_MINUTES:
        return []

    now = ensure_utc(now)
    window_end = now + timedelta(days=config.booking_window_days)
    day_end = config.local_to_utc(target_date, config.workday_end_min)
    duration = timedelta(minutes=duration_min)

    slots = []
    cursor = config.workday_start_min
    while cursor < config.workday_end_min:
        start_at = config.local_to_utc(target_date, cursor)
        end_at = start_at + duration
        if end_at > day_end:
            break

        conflict = bool(overlapping(occupied, start_at, end_at))
        in_window = now < start_at <= window_end

        slots.append({
            "start_at": start_at,
            "end_at": end_at,
            "available": in_window and not conflict,
        })
        cursor += config.slot_minutes

    return slots


def required_duration(
    db: Session,
    selections: list | None,
    config: ClinicConfig,
    now: datetime | None = None,
) -> int:
    """Total duration of the selected services, or one slot when none are selected."""
    if not selections:
        return config.slot_minutes
    return resolve_quote(db, selections, now=now).total_duration_min


def get_availability_for_day(
    db: Session,
    target_date: date,
    duration_min: int,
    employee_id: int,
    config: ClinicConfig | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Calculate the slot grid of a day for the given duration.

    Returns:
        Dict for AvailabilityDayResponse.
    """
    config = config or get_clinic_settings(db)
    now = ensure_utc(now) if now else datetime.now(timezone.utc)

    day_start, day_end = _utc_range(config, target_date, 1)
    occupied = load_occupied_intervals(db, employee_id, day_start, day_end)

    return {
        "date": target_date,
        "total_duration_min": duration_min,
        "slot_minutes": config.slot_minutes,
        "slots": build_day_slots(target_date, duration_min, config, occupied, now),
    }


def parse_month(month: str) -> tuple[int, int]:
    """Parse "YYYY-MM" into (year, month)."""
    try:
        year_str, month_str = month.split("-")
        year, month_num = int(year_str), int(month_str)
    except (AttributeError, ValueError):
        raise InvalidAvailabilityQuery(f"Invalid month '{month}', expected YYYY-MM.") from None
    if len(year_str) != 4 or year < 1 or not 1 <= month_num <= 12:
        raise InvalidAvailabilityQuery(f"Invalid month '{month}', expected YYYY-MM.")
    return year, month_num


def get_availability_for_month(
    db: Session,
    month: str,
    duration_min: int,
    employee_id: int,
    config: ClinicConfig | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Available slot count per calendar day of `month` ("YYYY-MM").

    Returns:
        Dict for AvailabilityMonthResponse.
    """
    year, month_num = parse_month(month)
    config = config or get_clinic_settings(db)
    now = ensure_utc(now) if now else datetime.now(timezone.utc)

    last_day = calendar.monthrange(year, month_num)[1]
    first = date(year, month_num, 1)
    range_start, range_end = _utc_range(config, first, last_day)
    occupied = load_occupied_intervals(db, employee_id, range_start, range_end)

    days = []
    for day_num in range(1, last_day + 1):
        target_date = date(year, month_num, day_num)
        slots = build_day_slots(target_date, duration_min, config, occupied, now)
        days.append({
            "date": target_date,
            "available_slot_count": sum(1 for slot in slots if slot["available"]),
        })

    return {"month": f"{year:04d}-{month_num:02d}", "days": days}


def _utc_range(config: ClinicConfig, first: date, days: int) -> tuple[datetime, datetime]:
    """UTC instants of local midnight on `first` and `days` later."""
    try:
        return (
            config.local_to_utc(first, 0),
            config.local_to_utc(first + timedelta(days=days), 0),
        )
    except (OverflowError, ValueError):
        raise InvalidAvailabilityQuery(f"Date {first.isoformat()} is out of supported range.") from None
