"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import AvailabilityWindow


class WindowConfig(BaseModel):
    """Working hours and slot granularity."""
    start_hour: int = 9
    end_hour: int = 18
    granularity_minutes: int = 15
    closed_weekdays: List[int] = Field(default_factory=list)  # 0=Monday, 6=Sunday

    @field_validator("granularity_minutes")
    @classmethod
    def validate_granularity(cls, value: int) -> int:
        """Ensure slots have a positive width."""
        if value <= 0:
            raise ValueError("granularity_minutes must be greater than zero")
        return value

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("closed_weekdays")
    @classmethod
    def validate_closed_weekdays(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"closed_weekdays must be between 0 and 6, got {invalid_days}")
        return sorted(set(value))

    @model_validator(mode="after")
    def validate_hours_order(self) -> "WindowConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    def to_window(self) -> AvailabilityWindow:
        return AvailabilityWindow(
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            granularity_minutes=self.granularity_minutes,
            closed_weekdays=tuple(self.closed_weekdays),
        )


class AppConfig(BaseModel):
    """Application configuration."""
    window: WindowConfig = Field(default_factory=WindowConfig)
    tz_offset_minutes: int = 0
    storage_path: Optional[Path] = None  # None keeps appointments in memory
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @field_validator("tz_offset_minutes")
    @classmethod
    def validate_tz_offset(cls, value: int) -> int:
        """Offsets beyond a day are always a mistake."""
        if not -24 * 60 < value < 24 * 60:
            raise ValueError(f"tz_offset_minutes must be within +/-1440, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.storage_path is not None and not config.storage_path.is_absolute():
            config = config.model_copy(
                update={"storage_path": config_path.parent / config.storage_path}
            )
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load an explicit config file, or the default one when present.

    Falls back to built-in defaults when no path is given and no default
    config file exists.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
