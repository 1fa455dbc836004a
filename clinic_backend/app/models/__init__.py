from .tables import (
    ACTIVE_BOOKING_STATUSES,
    BOOKING_STATUSES,
    Base,
    BookingBlocks,
    BookingItems,
    Bookings,
    BookingStatusLog,
    ClinicSettings,
    Employees,
    ServicePackageItems,
    ServicePromotions,
    Services,
    metadata,
)

__all__ = [
    "ACTIVE_BOOKING_STATUSES",
    "BOOKING_STATUSES",
    "Base",
    "BookingBlocks",
    "BookingItems",
    "Bookings",
    "BookingStatusLog",
    "ClinicSettings",
    "Employees",
    "ServicePackageItems",
    "ServicePromotions",
    "Services",
    "metadata",
]
