"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from .domain.exceptions import InvalidTimeZone
from .domain.models import BusinessHoursSpec, DayHours
from .domain.timezones import resolve_timezone

DEFAULT_CONFIG_FILENAME = "availability.yaml"


class DayHoursConfig(BaseModel):
    """Opening hours for one weekday. ``start``/``end`` are accepted as aliases."""
    open: Optional[time] = Field(default=None, validation_alias=AliasChoices("open", "start"))
    close: Optional[time] = Field(default=None, validation_alias=AliasChoices("close", "end"))
    closed: bool = False

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DayHoursConfig":
        """Ensure an open day opens before it closes."""
        if self.closed:
            return self
        if self.open is None or self.close is None:
            raise ValueError("open and close are required unless the day is closed")
        if self.open.tzinfo is not None or self.close.tzinfo is not None:
            raise ValueError("open and close are local times of day and must not carry an offset")
        if self.close <= self.open:
            raise ValueError(f"close ({self.close}) must be later than open ({self.open})")
        return self

    def to_day_hours(self) -> DayHours:
        if self.closed:
            return DayHours.closed_day()
        return DayHours(open=self.open, close=self.close)


class BusinessHoursConfig(BaseModel):
    """Weekly opening hours. Weekdays are numbered 0=Sunday ... 6=Saturday."""
    days: Dict[int, DayHoursConfig] = Field(default_factory=dict)
    default: Optional[DayHoursConfig] = None

    @field_validator("days")
    @classmethod
    def validate_weekdays(cls, value: Dict[int, DayHoursConfig]) -> Dict[int, DayHoursConfig]:
        """Ensure weekday keys are in valid range."""
        invalid_days = sorted(day for day in value if day not in range(7))
        if invalid_days:
            raise ValueError(f"weekdays must be between 0 and 6, got {invalid_days}")
        return value

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any]) -> "BusinessHoursConfig":
        """
        Build from either the nested form (``days`` / ``default``) or the flat
        caller form where weekday numbers and ``default`` are top-level keys.

        Raises:
            pydantic.ValidationError: If the mapping is invalid
        """
        if "days" in data:
            return cls.model_validate(dict(data))

        days = {key: value for key, value in data.items() if key != "default"}
        return cls.model_validate({"days": days, "default": data.get("default")})

    def to_spec(self) -> BusinessHoursSpec:
        """Convert to the domain BusinessHoursSpec."""
        return BusinessHoursSpec(
            days={day: hours.to_day_hours() for day, hours in self.days.items()},
            default=self.default.to_day_hours() if self.default else None,
        )


def _nine_to_five() -> BusinessHoursConfig:
    return BusinessHoursConfig(default=DayHoursConfig(open=time(9, 0), close=time(17, 0)))


class EngineConfig(BaseModel):
    """Engine defaults applied when a caller omits a parameter."""
    default_timezone: str = "UTC"
    business_hours: BusinessHoursConfig = Field(default_factory=_nine_to_five)
    buffer_minutes: int = 0
    horizon_days: int = 30
    suggestion_limit: int = 5

    @field_validator("default_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the default timezone resolves."""
        try:
            resolve_timezone(value)
        except InvalidTimeZone as exc:
            raise ValueError(f"Unknown timezone: {value!r}") from exc
        return value

    @field_validator("buffer_minutes", "suggestion_limit")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        """Ensure counts are not negative."""
        if value < 0:
            raise ValueError(f"Value must not be negative, got {value}")
        return value

    @field_validator("horizon_days")
    @classmethod
    def validate_horizon(cls, value: int) -> int:
        """Ensure the search horizon covers at least one day."""
        if value < 1:
            raise ValueError(f"horizon_days must be at least 1, got {value}")
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "EngineConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            EngineConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create an {DEFAULT_CONFIG_FILENAME} file. "
                f"See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        if isinstance(data.get("business_hours"), dict):
            data["business_hours"] = BusinessHoursConfig.from_mapping(data["business_hours"])

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for the config in the current directory first
    config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / DEFAULT_CONFIG_FILENAME

    return config_path
