"""Tests for admin time blocks."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from clinic_backend.app.models import BookingBlocks
from clinic_backend.app.services.booking import create_block, delete_block, find_conflicts, list_blocks
from clinic_backend.app.services.booking import blocks
from clinic_backend.app.services.booking.conflicts import lock_employee
from clinic_backend.app.services.booking.errors import BlockNotFound, InvalidBlock, SlotConflict
from tests.factories import DAY, add_booking, local


class TestBlocks:

    def test_create_block(self, db, employee):
        block = create_block(db, local(DAY, "18:00"), 90, note="Lunch", created_by_user_id=1)

        assert block.employee_id == employee.id
        assert block.ends_at == local(DAY, "19:30")
        assert block.note == "Lunch"
        assert find_conflicts(db, employee.id, local(DAY, "19:00"), local(DAY, "19:15"))

    def test_overlap_with_booking_rejected(self, db, employee):
        add_booking(db, employee, local(DAY, "17:00"), 30)
        with pytest.raises(SlotConflict, match="overlaps"):
            create_block(db, local(DAY, "16:45"), 30)
        assert db.query(BookingBlocks).count() == 0

    def test_overlap_with_block_rejected(self, db, employee):
        create_block(db, local(DAY, "18:00"), 60)
        with pytest.raises(SlotConflict):
            create_block(db, local(DAY, "18:30"), 60)

    def test_touching_blocks_allowed(self, db, employee):
        create_block(db, local(DAY, "18:00"), 60)
        create_block(db, local(DAY, "19:00"), 60)
        assert db.query(BookingBlocks).count() == 2

    def test_list_in_range(self, db, employee):
        create_block(db, local(DAY, "18:00"), 30)
        create_block(db, local(DAY + timedelta(days=7), "18:00"), 30)

        in_range = list_blocks(db, local(DAY, "00:00"), local(DAY, "23:59"))
        everything = list_blocks(db)

        assert len(in_range) == 1
        assert len(everything) == 2
        assert everything[0].starts_at > everything[1].starts_at  # newest first

    def test_delete(self, db, employee):
        block = create_block(db, local(DAY, "18:00"), 30)
        delete_block(db, block.id)
        assert find_conflicts(db, employee.id, local(DAY, "18:00"), local(DAY, "18:30")) == []

    def test_delete_missing(self, db):
        with pytest.raises(BlockNotFound):
            delete_block(db, 404)

    def test_locks_practitioner_before_checking(self, db, employee):
        calls = []

        def locking(session, employee_id):
            calls.append(("lock", employee_id))
            lock_employee(session, employee_id)

        def checking(session, employee_id, starts_at, ends_at):
            calls.append(("check", employee_id))
            return find_conflicts(session, employee_id, starts_at, ends_at)

        with patch.object(blocks, "lock_employee", side_effect=locking), \
                patch.object(blocks, "find_conflicts", side_effect=checking):
            create_block(db, local(DAY, "18:00"), 30)

        assert calls == [("lock", employee.id), ("check", employee.id)]

    def test_end_past_calendar(self, db, employee):
        with pytest.raises(InvalidBlock):
            create_block(db, datetime(9999, 12, 31, 23, 0, tzinfo=timezone.utc), 120)
