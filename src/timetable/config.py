"""Timetable configuration loaded from environment variables.

Only plain numeric/enumerated values live here; the engine receives them as
arguments and never reads the settings singleton itself.
"""

from datetime import date

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from src.timetable.datekeys import today_key

DEFAULT_EXAM_KEYWORDS: tuple[str, ...] = ("klassenarbeit", "klausur", "arbeit")


class TimetableSettings(BaseSettings):
    """Timetable configuration loaded from environment variables.

    Settings are loaded from TIMETABLE_* environment variables with sensible
    defaults. For local development, create a .env file in the project root.
    """

    # Merging
    merge_gap_minutes: int = Field(
        default=15,
        description="Merge adjacent equivalent slots whose gap is <= N minutes",
    )
    default_lesson_minutes: int = Field(
        default=45,
        description="Estimated duration for slots that report a start but no end",
    )

    # Time axis
    full_day_minutes: int = Field(
        default=12 * 60,
        description="Blocks at least this long are full-day placeholders and do not stretch the axis",
    )
    fallback_start_minutes: int = Field(
        default=7 * 60,
        description="Axis start used when the computed range is empty or inverted",
    )
    fallback_end_minutes: int = Field(
        default=17 * 60,
        description="Axis end used when the computed range is empty or inverted",
    )

    # Grid window
    grid_past_days: int = Field(default=0, description="Past days shown in the grid")
    grid_next_days: int = Field(default=3, description="Future days shown in the grid")
    grid_max_lessons: int = Field(
        default=0,
        description="Limit the grid's vertical range to the first N periods (0 = no limit)",
    )

    # List window
    list_past_days: int = Field(default=0, description="Past days shown in the lesson list")
    list_next_days: int = Field(default=2, description="Future days shown in the lesson list")
    list_show_regular: bool = Field(
        default=False,
        description="Also list regular lessons, not only changes and cancellations",
    )

    # Annotation
    exam_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXAM_KEYWORDS),
        description="Lowercase substrings of a lesson's free text that mark it as an exam",
    )

    # Fixed "today" for debugging and reproducible screenshots
    debug_date: date | None = Field(
        default=None,
        description="ISO date (YYYY-MM-DD) used instead of the wall clock",
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
        "env_prefix": "TIMETABLE_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("debug_date", mode="before")
    @classmethod
    def _blank_debug_date(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("exam_keywords")
    @classmethod
    def _lowercase_keywords(cls, value: list[str]) -> list[str]:
        return [k.strip().lower() for k in value if k.strip()]

    @model_validator(mode="after")
    def _check_fallback_window(self) -> "TimetableSettings":
        if self.fallback_end_minutes <= self.fallback_start_minutes:
            raise ValueError("fallback_end_minutes must be greater than fallback_start_minutes")
        return self

    def anchor_key(self) -> int:
        """Today's date key, honouring debug_date when set."""
        return today_key(self.debug_date)


# Singleton pattern
_config: TimetableSettings | None = None


def get_config() -> TimetableSettings:
    """Get the timetable configuration singleton.

    Returns:
        TimetableSettings: Timetable configuration instance
    """
    global _config
    if _config is None:
        _config = TimetableSettings()
    return _config


def reset_config() -> None:
    """Drop the cached singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
