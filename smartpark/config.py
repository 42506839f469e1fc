"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import LocationConfig, ZoneType


class ZoneLayout(BaseModel):
    """Initial slot layout of a zone."""
    total: int
    occupied: int = 0

    @model_validator(mode="after")
    def validate_counts(self) -> "ZoneLayout":
        """Ensure 0 <= occupied <= total."""
        if self.total < 0:
            raise ValueError(f"total must not be negative, got {self.total}")
        if not 0 <= self.occupied <= self.total:
            raise ValueError(
                f"occupied must be between 0 and total ({self.total}), got {self.occupied}"
            )
        return self


def _default_zones() -> Dict[ZoneType, ZoneLayout]:
    return {
        ZoneType.CAR: ZoneLayout(total=50, occupied=38),
        ZoneType.BIKE: ZoneLayout(total=80, occupied=52),
        ZoneType.BICYCLE: ZoneLayout(total=100, occupied=55),
    }


class LocationDefaults(BaseModel):
    """Location settings used until an administrator saves their own."""
    name: str = "College Campus Parking"
    price: int = 20
    duration_hours: int = 7
    surveillance: bool = True

    @field_validator("price", "duration_hours")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    def to_location_config(self) -> LocationConfig:
        return LocationConfig.build(
            name=self.name,
            amount=self.price,
            duration=self.duration_hours,
            surveillance=self.surveillance,
        )


class AppConfig(BaseModel):
    """Application configuration."""
    storage_dir: Path = Path(".smartpark")
    timezone: str = "Asia/Kolkata"
    log_level: str = "WARNING"
    extra_hour_rate: int = 5
    reset_occupancy_ratio: float = 0.3
    location: LocationDefaults = Field(default_factory=LocationDefaults)
    zones: Dict[ZoneType, ZoneLayout] = Field(default_factory=_default_zones)

    @field_validator("extra_hour_rate")
    @classmethod
    def validate_rate(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"extra_hour_rate must not be negative, got {value}")
        return value

    @field_validator("reset_occupancy_ratio")
    @classmethod
    def validate_ratio(cls, value: float) -> float:
        """Validate the ratio is a probability."""
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"reset_occupancy_ratio must be between 0 and 1, got {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("zones")
    @classmethod
    def fill_missing_zones(cls, value: Dict[ZoneType, ZoneLayout]) -> Dict[ZoneType, ZoneLayout]:
        """Zones left out of the config file keep their default layout."""
        merged = _default_zones()
        merged.update(value)
        return merged

    def zone_layout(self) -> Dict[ZoneType, Tuple[int, int]]:
        """Get the layout as ``zone -> (total, occupied)``."""
        return {zone: (layout.total, layout.occupied) for zone, layout in self.zones.items()}

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
                f"See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if not config.storage_dir.is_absolute():
            config.storage_dir = config_path.parent / config.storage_dir
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load the configuration, falling back to built-in defaults.

    An explicitly given path must exist; the default location is optional.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
