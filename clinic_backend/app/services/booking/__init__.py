# clinic_backend/app/services/booking/__init__.py
"""
Booking engine.

Quote:        services -> priced, durationed line items
Conflicts:    overlap check against active bookings and blocks
Availability: slot grid per day, available counts per month
Workflow:     quote -> window -> hours -> conflict -> persist
"""

from .availability import (
    build_day_slots,
    get_availability_for_day,
    get_availability_for_month,
    required_duration,
)
from .blocks import create_block, delete_block, list_blocks
from .config import (
    ClinicConfig,
    get_clinic_settings,
    get_default_employee,
)
from .conflicts import OccupiedInterval, find_conflicts
from .errors import BookingError
from .quote import Quote, QuoteItem, ServiceSelection, normalize_selections, resolve_quote
from .workflow import cancel_booking, create_booking

__all__ = [
    "BookingError",
    "ClinicConfig",
    "OccupiedInterval",
    "Quote",
    "QuoteItem",
    "ServiceSelection",
    "build_day_slots",
    "cancel_booking",
    "create_block",
    "create_booking",
    "delete_block",
    "find_conflicts",
    "get_availability_for_day",
    "get_availability_for_month",
    "get_clinic_settings",
    "get_default_employee",
    "list_blocks",
    "normalize_selections",
    "required_duration",
    "resolve_quote",
]
