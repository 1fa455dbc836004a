# clinic_backend/app/services/booking/conflicts.py
"""
Conflict detection against the practitioner's occupied time.

Occupied = bookings in pending/confirmed + admin blocks. Intervals are
half-open [starts_at, ends_at): touching intervals do not conflict.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from ...models import ACTIVE_BOOKING_STATUSES, BookingBlocks, Bookings, Employees
from .config import ensure_utc


@dataclass(frozen=True)
class OccupiedInterval:
    kind: str  # "booking" | "block"
    id: int
    starts_at: datetime
    ends_at: datetime


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    return a_start < b_end and a_end > b_start


def load_occupied_intervals(
    db: Session,
    employee_id: int,
    range_start: datetime,
    range_end: datetime,
) -> list[OccupiedInterval]:
    """
    Bookings and blocks that could overlap [range_start, range_end].

    Coarse, inclusive filter; callers apply the exact half-open test.
    Result is ordered by start time.
    """
    bookings = (
        db.query(Bookings.id, Bookings.starts_at, Bookings.ends_at)
        .filter(
            Bookings.employee_id == employee_id,
            Bookings.status.in_(ACTIVE_BOOKING_STATUSES),
            Bookings.starts_at <= range_end,
            Bookings.ends_at >= range_start,
        )
        .all()
    )
    blocks = (
        db.query(BookingBlocks.id, BookingBlocks.starts_at, BookingBlocks.ends_at)
        .filter(
            BookingBlocks.employee_id == employee_id,
            BookingBlocks.starts_at <= range_end,
            BookingBlocks.ends_at >= range_start,
        )
        .all()
    )

    intervals = [
        OccupiedInterval("booking", row.id, ensure_utc(row.starts_at), ensure_utc(row.ends_at))
        for row in bookings
    ] + [
        OccupiedInterval("block", row.id, ensure_utc(row.starts_at), ensure_utc(row.ends_at))
        for row in blocks
    ]
    intervals.sort(key=lambda i: (i.starts_at, i.ends_at, i.kind, i.id))
    return intervals


def overlapping(
    intervals: list[OccupiedInterval],
    starts_at: datetime,
    ends_at: datetime,
) -> list[OccupiedInterval]:
    return [
        interval for interval in intervals
        if intervals_overlap(starts_at, ends_at, interval.starts_at, interval.ends_at)
    ]


def find_conflicts(
    db: Session,
    employee_id: int,
    starts_at: datetime,
    ends_at: datetime,
) -> list[OccupiedInterval]:
    """
    Occupied intervals overlapping [starts_at, ends_at).

    Pass the session of the surrounding transaction so the check and a
    following insert see the same snapshot. Empty list = slot is free.
    """
    starts_at = ensure_utc(starts_at)
    ends_at = ensure_utc(ends_at)
    if not starts_at < ends_at:
        raise ValueError("Invalid date range for conflict check.")

    candidates = load_occupied_intervals(db, employee_id, starts_at, ends_at)
    return overlapping(candidates, starts_at, ends_at)


def lock_employee(db: Session, employee_id: int) -> None:
    """
    Row lock on the practitioner (SELECT ... FOR UPDATE, no-op on SQLite).

    Every writer of occupied time (bookings, blocks) takes it before its
    conflict check, so check + insert serialize per practitioner.
    """
    db.query(Employees.id).filter(Employees.id == employee_id).with_for_update().one()
