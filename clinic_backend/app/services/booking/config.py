# clinic_backend/app/services/booking/config.py
"""
Clinic configuration provider.

Materializes the clinic's scheduling configuration (slot granularity,
booking window, working hours) and the default practitioner, creating
either one with defaults on first access.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import settings
from ...models import ClinicSettings, Employees

logger = logging.getLogger(__name__)

_TIME_RE = re.compile(r"^\d{2}:\d{2}$")


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time_str(total_minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive input is taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ClinicConfig:
    """
    Scheduling configuration of the clinic.

    Attributes:
        slot_minutes: Granularity of bookable start times (5..60)
        booking_window_days: How far ahead bookings may be placed (1..60)
        workday_start: Local opening time "HH:MM"
        workday_end: Local closing time "HH:MM"
        timezone: IANA zone the working hours are expressed in
    """
    slot_minutes: int = 15
    booking_window_days: int = 31
    workday_start: str = "16:00"
    workday_end: str = "21:00"
    timezone: str = "Europe/Belgrade"

    def __post_init__(self):
        """Validate configuration."""
        if not 5 <= self.slot_minutes <= 60:
            raise ValueError(f"slot_minutes must be within 5..60, got {self.slot_minutes}")
        if not 1 <= self.booking_window_days <= 60:
            raise ValueError(
                f"booking_window_days must be within 1..60, got {self.booking_window_days}"
            )
        for value in (self.workday_start, self.workday_end):
            if not isinstance(value, str) or not _TIME_RE.match(value):
                raise ValueError(f"workday bounds must be HH:MM, got {value!r}")
        # Ordering of start/end is not validated: an inverted day yields no slots.

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def workday_start_min(self) -> int:
        return time_str_to_minutes(self.workday_start)

    @property
    def workday_end_min(self) -> int:
        return time_str_to_minutes(self.workday_end)

    def local_to_utc(self, day: date, total_minutes: int) -> datetime:
        """Clinic-local wall clock (day + minutes since midnight) as UTC instant."""
        extra_days, minutes = divmod(total_minutes, 24 * 60)  # "24:00" closes at midnight
        local = datetime.combine(
            day + timedelta(days=extra_days), time(minutes // 60, minutes % 60), tzinfo=self.tz
        )
        return local.astimezone(timezone.utc)

    def workday_bounds(self, day: date) -> tuple[datetime, datetime]:
        """Opening and closing instants (UTC) of the given local day."""
        return (
            self.local_to_utc(day, self.workday_start_min),
            self.local_to_utc(day, self.workday_end_min),
        )

    def local_date(self, value: datetime) -> date:
        return ensure_utc(value).astimezone(self.tz).date()


def default_clinic_config() -> ClinicConfig:
    """Configuration derived from environment settings only."""
    return ClinicConfig(
        slot_minutes=settings.clinic_slot_minutes,
        booking_window_days=settings.clinic_booking_window_days,
        workday_start=settings.clinic_workday_start,
        workday_end=settings.clinic_workday_end,
        timezone=settings.clinic_timezone,
    )


def get_clinic_settings(db: Session) -> ClinicConfig:
    """
    Return the newest clinic_settings row as ClinicConfig.

    On first access the env defaults are persisted as a new row.
    A row with out-of-range values falls back to env defaults.
    """
    row = (
        db.query(ClinicSettings)
        .order_by(ClinicSettings.created_at.desc(), ClinicSettings.id.desc())
        .first()
    )

    if row is None:
        defaults = default_clinic_config()
        row = ClinicSettings(
            slot_minutes=defaults.slot_minutes,
            booking_window_days=defaults.booking_window_days,
            workday_start=defaults.workday_start,
            workday_end=defaults.workday_end,
        )
        db.add(row)
        db.commit()
        logger.info(
            f"Clinic settings materialized with defaults: "
            f"slot={defaults.slot_minutes}min window={defaults.booking_window_days}d "
            f"hours={defaults.workday_start}-{defaults.workday_end}"
        )
        return defaults

    try:
        return ClinicConfig(
            slot_minutes=row.slot_minutes,
            booking_window_days=row.booking_window_days,
            workday_start=row.workday_start,
            workday_end=row.workday_end,
            timezone=settings.clinic_timezone,
        )
    except ValueError as e:
        logger.warning(f"Clinic settings row {row.id} is invalid ({e}), using defaults")
        return default_clinic_config()


def get_default_employee(db: Session) -> Employees:
    """
    Get-or-create the default practitioner by its configured slug.

    Concurrent first calls race on the unique slug; the loser rolls back
    and reads the row the winner inserted.
    """
    slug = settings.clinic_default_employee_slug

    employee = (
        db.query(Employees)
        .filter(Employees.slug == slug, Employees.is_active == 1)
        .first()
    )
    if employee:
        return employee

    employee = Employees(
        full_name=settings.clinic_default_employee_name,
        slug=slug,
        is_active=1,
    )
    db.add(employee)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        employee = db.query(Employees).filter(Employees.slug == slug).one()
        if not employee.is_active:
            logger.warning(f"Default practitioner '{slug}' exists but is inactive")
        return employee

    db.refresh(employee)
    logger.info(f"Default practitioner created: id={employee.id} slug={slug}")
    return employee
