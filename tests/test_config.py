"""Tests for the clinic configuration provider."""

from datetime import date, timedelta

import pytest

from clinic_backend.app.models import ClinicSettings, Employees
from clinic_backend.app.services.booking import get_clinic_settings, get_default_employee
from clinic_backend.app.services.booking.config import (
    ClinicConfig,
    minutes_to_time_str,
    time_str_to_minutes,
)
from tests.factories import DAY, local


class TestClinicConfig:

    @pytest.mark.parametrize("kwargs", [
        {"slot_minutes": 4},
        {"slot_minutes": 61},
        {"booking_window_days": 0},
        {"booking_window_days": 61},
        {"workday_start": "4pm"},
        {"workday_end": "21:0"},
    ])
    def test_out_of_range_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ClinicConfig(**kwargs)

    def test_workday_bounds_in_clinic_timezone(self):
        start, end = ClinicConfig().workday_bounds(DAY)
        assert start.hour == 15  # 16:00 CET
        assert end.hour == 20

    def test_summer_offset(self):
        start, _ = ClinicConfig().workday_bounds(date(2026, 7, 1))
        assert start.hour == 14  # 16:00 CEST

    def test_midnight_closing(self):
        config = ClinicConfig(workday_end="24:00")
        _, end = config.workday_bounds(DAY)
        assert end == local(DAY + timedelta(days=1), "00:00")

    def test_time_helpers(self):
        assert time_str_to_minutes("16:30") == 990
        assert minutes_to_time_str(990) == "16:30"


class TestGetClinicSettings:

    def test_defaults_persisted_on_first_access(self, db):
        config = get_clinic_settings(db)

        assert config == ClinicConfig()
        row = db.query(ClinicSettings).one()
        assert (row.slot_minutes, row.booking_window_days) == (15, 31)
        assert (row.workday_start, row.workday_end) == ("16:00", "21:00")

    def test_second_access_reads_row(self, db):
        get_clinic_settings(db)
        get_clinic_settings(db)
        assert db.query(ClinicSettings).count() == 1

    def test_stored_values_win(self, db):
        db.add(ClinicSettings(slot_minutes=30, booking_window_days=14, workday_start="09:00", workday_end="17:00"))
        db.commit()

        config = get_clinic_settings(db)

        assert config.slot_minutes == 30
        assert config.booking_window_days == 14
        assert (config.workday_start, config.workday_end) == ("09:00", "17:00")

    def test_invalid_row_falls_back_to_defaults(self, db):
        db.add(ClinicSettings(slot_minutes=3, booking_window_days=14, workday_start="09:00", workday_end="17:00"))
        db.commit()
        assert get_clinic_settings(db) == ClinicConfig()


class TestDefaultEmployee:

    def test_created_once(self, db):
        first = get_default_employee(db)
        second = get_default_employee(db)

        assert first.id == second.id
        assert first.slug == "main-practitioner"
        assert db.query(Employees).count() == 1

    def test_existing_row_reused(self, db):
        db.add(Employees(full_name="Dr. Petrovic", slug="main-practitioner", is_active=1))
        db.commit()
        assert get_default_employee(db).full_name == "Dr. Petrovic"

    def test_slug_taken_by_inactive_row(self, db, caplog):
        """The insert hits the unique slug; the existing row is read back."""
        retired = Employees(full_name="Dr. Retired", slug="main-practitioner", is_active=0)
        db.add(retired)
        db.commit()

        employee = get_default_employee(db)

        assert employee.id == retired.id
        assert db.query(Employees).count() == 1
        assert "exists but is inactive" in caplog.text
