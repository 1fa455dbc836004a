# clinic_backend/app/routers/bookings.py

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from ..auth import get_current_user_id
from ..database import get_db
from ..schemas.bookings import (
    BookingCancel,
    BookingCancelled,
    BookingCreate,
    BookingCreated,
    BookingRead,
)
from ..schemas.quote import QuoteRead
from ..services.booking import cancel_booking, create_booking
from ..services.events import notify_booking_cancelled, notify_booking_created

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking_endpoint(
    data: BookingCreate,
    background_tasks: BackgroundTasks,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    booking, quote = create_booking(
        db,
        user_id=user_id,
        selections=data.as_selections(),
        starts_at=data.start_at,
        notes=data.notes,
    )
    # Operator alert runs after the response; its failure never fails the booking
    background_tasks.add_task(
        notify_booking_created,
        booking.id,
        user_id,
        booking.starts_at.isoformat(),
        booking.total_price,
    )
    return BookingCreated(
        booking=BookingRead.model_validate(booking),
        quote=QuoteRead.model_validate(quote),
    )


@router.patch("/{id}/cancel", response_model=BookingCancelled)
def cancel_booking_endpoint(
    id: int,
    background_tasks: BackgroundTasks,
    data: BookingCancel | None = None,
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    reason = data.reason if data else None
    booking = cancel_booking(db, booking_id=id, user_id=user_id, reason=reason)
    background_tasks.add_task(notify_booking_cancelled, booking.id, user_id, reason)
    return BookingCancelled(booking_id=booking.id, status=booking.status)
