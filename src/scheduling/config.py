"""Scheduling configuration loaded from environment variables."""

from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field
from pydantic_settings import BaseSettings

from src.scheduling.errors import InvalidConfiguration
from src.scheduling.models import ViewMode

# Python weekday number (0=Monday) by lower-case day name
WEEKDAY_INDEX: dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


class SchedulingConfig(BaseSettings):
    """Scheduling configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Calendar settings
    timezone: str = Field(
        default="UTC",
        description="IANA timezone used to decide today and local session dates",
    )
    first_day_of_week: str = Field(
        default="sunday",
        description="Day name that starts each calendar row",
    )
    default_view_mode: ViewMode = Field(
        default=ViewMode.WEEK,
        description="View mode used when none (or an unknown one) is requested",
    )

    # Bookable day
    slot_start: str = Field(
        default="08:00",
        description="First bookable time of day (HH:MM, 24-hour)",
    )
    slot_end: str = Field(
        default="20:00",
        description="End of the bookable day (HH:MM, 24-hour, exclusive)",
    )
    slot_interval_minutes: int = Field(
        default=60,
        description="Length of each bookable slot in minutes",
    )

    # Platform API (session source)
    api_base_url: str = Field(
        default="",
        description="Tutoring platform base URL, e.g. https://tutor.example.com",
    )
    api_token: str = Field(
        default="",
        description="Bearer token for the platform API",
    )
    api_sessions_path: str = Field(
        default="/api/teacher/sessions",
        description="Path of the sessions listing endpoint",
    )
    api_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for API requests",
    )
    api_max_attempts: int = Field(
        default=3,
        description="Attempts per API request before giving up on transient errors",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "SCHEDULING_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def tzinfo(self) -> tzinfo:
        """Resolve the configured timezone name.

        Raises:
            InvalidConfiguration: If the name is not a known IANA timezone.
        """
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidConfiguration(f"Unknown timezone {self.timezone!r}") from e

    @property
    def first_weekday(self) -> int:
        """Python weekday number (0=Monday) of the configured first day of week."""
        index = WEEKDAY_INDEX.get(self.first_day_of_week.strip().lower())
        if index is None:
            raise InvalidConfiguration(
                f"Unknown first day of week {self.first_day_of_week!r}. "
                f"Valid: {list(WEEKDAY_INDEX.keys())}"
            )
        return index


# Singleton pattern
_config: SchedulingConfig | None = None


def get_config() -> SchedulingConfig:
    """Get the scheduling configuration singleton.

    Returns:
        SchedulingConfig: Scheduling configuration instance
    """
    global _config
    if _config is None:
        _config = SchedulingConfig()
    return _config


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
