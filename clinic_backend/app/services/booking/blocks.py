# clinic_backend/app/services/booking/blocks.py
"""
Admin time blocks on the practitioner's calendar.

A block occupies time exactly like an active booking, so it is created
only when the conflict detector finds the interval free.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from ...models import BookingBlocks
from .config import ensure_utc, get_default_employee
from .conflicts import find_conflicts, lock_employee
from .errors import BlockNotFound, InvalidBlock, SlotConflict

logger = logging.getLogger(__name__)

RECENT_BLOCKS_LIMIT = 200


def create_block(
    db: Session,
    starts_at: datetime,
    duration_min: int,
    note: str | None = None,
    created_by_user_id: int | None = None,
) -> BookingBlocks:
    employee = get_default_employee(db)
    starts_at = ensure_utc(starts_at)
    try:
        ends_at = starts_at + timedelta(minutes=duration_min)
    except OverflowError:
        raise InvalidBlock("Block ends past the supported date range.") from None

    try:
        lock_employee(db, employee.id)

        if find_conflicts(db, employee.id, starts_at, ends_at):
            raise SlotConflict("Block overlaps with existing booking/block.")

        block = BookingBlocks(
            employee_id=employee.id,
            starts_at=starts_at,
            ends_at=ends_at,
            duration_min=duration_min,
            note=note or None,
            created_by_user_id=created_by_user_id,
        )
        db.add(block)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(block)
    logger.info(f"Block {block.id} created: {starts_at.isoformat()} +{duration_min}min")
    return block


def list_blocks(
    db: Session,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[BookingBlocks]:
    """Blocks starting within [date_from, date_to], or the most recent ones."""
    employee = get_default_employee(db)
    query = db.query(BookingBlocks).filter(BookingBlocks.employee_id == employee.id)

    if date_from is not None and date_to is not None:
        return (
            query.filter(
                BookingBlocks.starts_at >= ensure_utc(date_from),
                BookingBlocks.starts_at <= ensure_utc(date_to),
            )
            .order_by(BookingBlocks.starts_at)
            .all()
        )

    return (
        query.order_by(BookingBlocks.starts_at.desc())
        .limit(RECENT_BLOCKS_LIMIT)
        .all()
    )


def delete_block(db: Session, block_id: int) -> None:
    block = db.get(BookingBlocks, block_id)
    if not block:
        raise BlockNotFound()
    db.delete(block)
    db.commit()
    logger.info(f"Block {block_id} deleted")
