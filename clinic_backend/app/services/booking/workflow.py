# clinic_backend/app/services/booking/workflow.py
"""
Booking commit workflow.

Linear pipeline, any failure rejects without side effects:

    quote -> booking window -> working hours -> conflict check -> persist

The conflict check runs inside the insert's transaction after locking
the practitioner row (SELECT ... FOR UPDATE on PostgreSQL), so two
commits for the same practitioner serialize on that lock. On PostgreSQL
the bookings_no_overlap exclusion constraint backs this up.
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import (
    ACTIVE_BOOKING_STATUSES,
    BookingItems,
    Bookings,
    BookingStatusLog,
)
from .config import ClinicConfig, ensure_utc, get_clinic_settings, get_default_employee
from .conflicts import find_conflicts, lock_employee
from .errors import (
    BookingNotCancellable,
    BookingNotFound,
    CancellationWindowClosed,
    OutOfBookingWindow,
    OutsideWorkingHours,
    SlotConflict,
)
from .quote import Quote, resolve_quote

logger = logging.getLogger(__name__)

CANCEL_NOTICE_HOURS = 2
OVERLAP_CONSTRAINT = "bookings_no_overlap"


def is_within_booking_window(starts_at: datetime, window_days: int, now: datetime) -> bool:
    """starts_at within [now, now + window_days], both ends inclusive."""
    return now <= starts_at <= now + timedelta(days=window_days)


def is_within_work_hours(starts_at: datetime, ends_at: datetime, config: ClinicConfig) -> bool:
    """Whole [starts_at, ends_at) inside the workday of the start's local date."""
    day_start, day_end = config.workday_bounds(config.local_date(starts_at))
    return day_start <= starts_at and ends_at <= day_end


def has_cancel_window(starts_at: datetime, now: datetime) -> bool:
    return ensure_utc(starts_at) - now >= timedelta(hours=CANCEL_NOTICE_HOURS)


def create_booking(
    db: Session,
    user_id: int,
    selections: list,
    starts_at: datetime,
    notes: str | None = None,
    now: datetime | None = None,
) -> tuple[Bookings, Quote]:
    """
    Validate and persist a booking in status pending.

    Returns:
        (booking, quote)

    Raises:
        InvalidServiceSelection, OutOfBookingWindow, OutsideWorkingHours,
        SlotConflict
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    starts_at = ensure_utc(starts_at)

    # Step 1: Quote
    quote = resolve_quote(db, selections, now=now)
    config = get_clinic_settings(db)

    # Step 2: Booking window
    if not is_within_booking_window(starts_at, config.booking_window_days, now):
        raise OutOfBookingWindow(config.booking_window_days)

    # Step 3: Working hours
    try:
        ends_at = starts_at + timedelta(minutes=quote.total_duration_min)
    except OverflowError:
        # No workday can hold an end past the calendar
        raise OutsideWorkingHours(config.workday_start, config.workday_end) from None
    if not is_within_work_hours(starts_at, ends_at, config):
        raise OutsideWorkingHours(config.workday_start, config.workday_end)

    employee = get_default_employee(db)

    # Step 4 + 5: authoritative conflict check and insert, one transaction
    try:
        lock_employee(db, employee.id)

        if find_conflicts(db, employee.id, starts_at, ends_at):
            raise SlotConflict()

        booking = Bookings(
            user_id=user_id,
            employee_id=employee.id,
            starts_at=starts_at,
            ends_at=ends_at,
            status="pending",
            total_price=quote.total_price,
            total_duration_min=quote.total_duration_min,
            notes=notes or None,
        )
        db.add(booking)
        db.flush()

        for item in quote.items:
            db.add(BookingItems(
                booking_id=booking.id,
                service_id=item.service_id,
                quantity=item.quantity,
                unit_label=item.unit_label,
                service_name_snapshot=item.name,
                price_snapshot=item.final_price,
                regular_price_snapshot=item.regular_price,
                duration_min_snapshot=item.duration_min,
                used_promotion=int(item.used_promotion),
                source_package_service_id=item.source_package_service_id,
            ))

        db.add(BookingStatusLog(
            booking_id=booking.id,
            previous_status=None,
            next_status="pending",
            changed_by_user_id=user_id,
            note="Booking created online",
        ))
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if OVERLAP_CONSTRAINT in str(e.orig):
            raise SlotConflict() from e
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(
        f"Booking {booking.id} created: user={user_id} employee={employee.id} "
        f"{starts_at.isoformat()} +{quote.total_duration_min}min {quote.total_price} {quote.currency}"
    )
    return booking, quote


def cancel_booking(
    db: Session,
    booking_id: int,
    user_id: int,
    reason: str | None = None,
    now: datetime | None = None,
) -> Bookings:
    """
    Cancel a client's own booking.

    Allowed only for pending/confirmed bookings starting at least
    CANCEL_NOTICE_HOURS from now.
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)

    booking = (
        db.query(Bookings)
        .filter(Bookings.id == booking_id, Bookings.user_id == user_id)
        .first()
    )
    if not booking:
        raise BookingNotFound()

    if booking.status not in ACTIVE_BOOKING_STATUSES:
        raise BookingNotCancellable(booking.status)

    if not has_cancel_window(booking.starts_at, now):
        raise CancellationWindowClosed(CANCEL_NOTICE_HOURS)

    previous_status = booking.status
    try:
        booking.status = "cancelled"
        booking.cancelled_at = now
        booking.cancel_reason = reason or None
        booking.updated_at = now
        db.add(BookingStatusLog(
            booking_id=booking.id,
            previous_status=previous_status,
            next_status="cancelled",
            changed_by_user_id=user_id,
            note=reason or "Cancelled by client",
        ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(f"Booking {booking.id} cancelled by user={user_id} (was {previous_status})")
    return booking
