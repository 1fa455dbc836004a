import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .redis_client import redis_client
from .routers import availability, blocks, bookings, quote
from .services.booking.errors import BookingError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Clinic Booking API")

app.include_router(quote.router)
app.include_router(availability.router)
app.include_router(bookings.router)
app.include_router(blocks.router)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error, please retry.", "code": "internal_error"},
    )


@app.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        redis_ok = bool(redis_client.ping())
    except Exception as e:
        logger.warning(f"Health: redis unavailable: {e}")
        redis_ok = False

    try:
        db.execute(text("SELECT 1"))
        database_ok = True
    except SQLAlchemyError as e:
        logger.warning(f"Health: database unavailable: {e}")
        database_ok = False

    return {"redis": redis_ok, "database": database_ok}
