# clinic_backend/app/config.py

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/sqlite/clinic.db"
    redis_url: str = "redis://localhost:6379/0"
    log_level: str = "INFO"

    # Clinic defaults, used until an admin stores clinic_settings
    clinic_timezone: str = "Europe/Belgrade"
    clinic_default_employee_slug: str = "main-practitioner"
    clinic_default_employee_name: str = "Clinic Practitioner"
    clinic_slot_minutes: int = Field(15, ge=5, le=60)
    clinic_booking_window_days: int = Field(31, ge=1, le=60)
    clinic_workday_start: str = Field("16:00", pattern=r"^\d{2}:\d{2}$")
    clinic_workday_end: str = Field("21:00", pattern=r"^\d{2}:\d{2}$")
    clinic_max_booking_duration_min: int | None = Field(None, ge=1)

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative SQLite path -> absolute, anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
