"""
Configuration management for flight log export.

Provides centralized configuration handling with validation and defaults.
The configuration is read-only while logs are being decoded.
"""

from dataclasses import dataclass, fields, replace
from typing import Dict, Any, Optional, Union
import json
from pathlib import Path

from .utils.units import Unit, SPEED_UNITS, VOLTAGE_UNITS, CURRENT_UNITS, parse_unit
from .utils.error_handling import ConfigurationError


@dataclass
class ExportConfig:
    """Configuration class for the flight log export pipeline."""

    # Decoding settings
    raw: bool = False  # Don't apply predictions; pass invalid frames through
    debug: bool = False  # Emit frame-level decode diagnostics
    log_number: Optional[int] = None  # 1-based sub-log to decode (None = all)

    # Output shaping
    merge_gps: bool = False  # Merge GPS columns into the main table
    print_limits: bool = False  # Append the per-field min/max/range table to the report
    to_stdout: bool = False  # Write the main table to stdout instead of a file
    output_prefix: Optional[str] = None  # Output filename prefix (default: input name)
    create_visualizations: bool = False  # Plot the GPS track to PNG

    # Attitude simulation
    simulate_imu: bool = False  # Compute roll/pitch/heading columns
    imu_ignore_mag: bool = False  # Ignore magnetometer data for heading
    magnetic_declination: float = 0.0  # degrees

    # Display units
    unit_gps_speed: Union[Unit, str] = Unit.METERS_PER_SECOND
    unit_vbat: Union[Unit, str] = Unit.VOLTS
    unit_amperage: Union[Unit, str] = Unit.AMPS

    # Logging
    verbose: bool = False

    def __post_init__(self):
        """Normalize units and validate configuration after initialization."""
        self.unit_gps_speed = parse_unit(self.unit_gps_speed)
        self.unit_vbat = parse_unit(self.unit_vbat)
        self.unit_amperage = parse_unit(self.unit_amperage)
        self._validate_config()

    def _validate_config(self):
        """Validate configuration parameters."""
        if self.unit_gps_speed not in SPEED_UNITS:
            raise ConfigurationError(f"Bad GPS speed unit: {self.unit_gps_speed.label}")

        if self.unit_vbat not in VOLTAGE_UNITS:
            raise ConfigurationError(f"Bad VBAT unit: {self.unit_vbat.label}")

        if self.unit_amperage not in CURRENT_UNITS:
            raise ConfigurationError(f"Bad amperage unit: {self.unit_amperage.label}")

        if self.log_number is not None and self.log_number < 1:
            raise ConfigurationError("log_number must be 1 or greater")

        if not -180.0 <= self.magnetic_declination <= 180.0:
            raise ConfigurationError("magnetic_declination must be between -180 and 180 degrees")

    @classmethod
    def from_file(cls, config_path: str) -> 'ExportConfig':
        """
        Load configuration from JSON file.

        Args:
            config_path: Path to JSON configuration file

        Returns:
            ExportConfig instance
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, 'r') as f:
            config_dict = json.load(f)

        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        config_dict = {}
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            config_dict[config_field.name] = value.label if isinstance(value, Unit) else value
        return config_dict

    def to_file(self, config_path: str):
        """
        Save configuration to JSON file.

        Args:
            config_path: Path where to save the configuration
        """
        path = Path(config_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def copy(self, **changes) -> 'ExportConfig':
        """Create a copy of the configuration, optionally with some settings changed."""
        return replace(self, **changes)
