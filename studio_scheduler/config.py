"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env at the project root (parent of studio_scheduler/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_env_path, env_prefix="STUDIO_", extra="ignore"
    )

    log_level: str = "INFO"
    # Reporting assumes every room could be booked this many hours a day.
    available_hours_per_day: int = 12
    swap_disclaimer: str = (
        "Rooms may be swapped at any time. Pricing will reflect assigned room."
    )
    # Engineer value meaning "no engineer requested"; skipped in engineer hours.
    no_preference_engineer: str = "No preference"
    seed_demo_data: bool = True

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()


settings = Settings()
