# clinic_backend/app/services/booking/errors.py
"""
Domain errors raised by the booking engine.

Every error carries the HTTP status and a stable machine code; the API
layer renders them as {"detail": ..., "code": ...}.
"""


class BookingError(Exception):
    status_code = 400
    code = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidServiceSelection(BookingError):
    code = "invalid_service_selection"


class InvalidAvailabilityQuery(BookingError):
    code = "invalid_availability_query"


class OutOfBookingWindow(BookingError):
    code = "out_of_booking_window"

    def __init__(self, window_days: int):
        super().__init__(f"Booking must be within next {window_days} days.")
        self.window_days = window_days


class OutsideWorkingHours(BookingError):
    code = "outside_working_hours"

    def __init__(self, workday_start: str, workday_end: str):
        super().__init__(
            f"Booking must fit within working hours {workday_start}-{workday_end}."
        )
        self.workday_start = workday_start
        self.workday_end = workday_end


class SlotConflict(BookingError):
    status_code = 409
    code = "slot_conflict"

    def __init__(self, message: str = "Requested slot is no longer available."):
        super().__init__(message)


class BookingNotFound(BookingError):
    status_code = 404
    code = "booking_not_found"

    def __init__(self, message: str = "Booking not found."):
        super().__init__(message)


class BookingNotCancellable(BookingError):
    status_code = 409
    code = "booking_not_cancellable"

    def __init__(self, status: str):
        super().__init__(f"Booking cannot be cancelled in status '{status}'.")
        self.status = status


class CancellationWindowClosed(BookingError):
    code = "cancellation_window_closed"

    def __init__(self, notice_hours: int):
        super().__init__(
            f"Cancellation is allowed at least {notice_hours} hours before appointment."
        )
        self.notice_hours = notice_hours


class BlockNotFound(BookingError):
    status_code = 404
    code = "block_not_found"

    def __init__(self, message: str = "Block not found."):
        super().__init__(message)


class InvalidBlock(BookingError):
    code = "invalid_block"
