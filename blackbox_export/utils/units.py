"""
Unit conversion utilities.

Pure functions mapping raw field values to display units (speed, voltage, current).
"""

from enum import Enum
from typing import Union

from .error_handling import ConfigurationError, UnitConversionError


MILES_PER_METER = 0.00062137


class Unit(Enum):
    """Display unit of an exported field. The value is the header label."""

    RAW = "raw"
    METERS_PER_SECOND = "m/s"
    KILOMETERS_PER_HOUR = "km/h"
    MILES_PER_HOUR = "mi/h"
    MILLIVOLTS = "mV"
    MILLIAMPS = "mA"
    VOLTS = "V"
    AMPS = "A"

    @property
    def label(self) -> str:
        return self.value


SPEED_UNITS = frozenset({
    Unit.RAW, Unit.METERS_PER_SECOND, Unit.KILOMETERS_PER_HOUR, Unit.MILES_PER_HOUR
})
VOLTAGE_UNITS = frozenset({Unit.RAW, Unit.MILLIVOLTS, Unit.VOLTS})
CURRENT_UNITS = frozenset({Unit.RAW, Unit.MILLIAMPS, Unit.AMPS})

_UNIT_ALIASES = {
    'kph': Unit.KILOMETERS_PER_HOUR,
    'kmph': Unit.KILOMETERS_PER_HOUR,
    'km/h': Unit.KILOMETERS_PER_HOUR,
    'km/hr': Unit.KILOMETERS_PER_HOUR,
    'mps': Unit.METERS_PER_SECOND,
    'm/s': Unit.METERS_PER_SECOND,
    'mph': Unit.MILES_PER_HOUR,
    'mi/h': Unit.MILES_PER_HOUR,
    'mi/hr': Unit.MILES_PER_HOUR,
    'mv': Unit.MILLIVOLTS,
    'ma': Unit.MILLIAMPS,
    'v': Unit.VOLTS,
    'a': Unit.AMPS,
    'raw': Unit.RAW,
}


def parse_unit(text: Union[str, Unit]) -> Unit:
    """
    Parse a unit name as typed by an operator.

    Args:
        text: Unit name, case-insensitive (e.g. 'kph', 'm/s', 'mV'), or a Unit

    Returns:
        Matching Unit

    Raises:
        ConfigurationError: If the text names no known unit
    """
    if isinstance(text, Unit):
        return text

    unit = _UNIT_ALIASES.get(str(text).strip().lower())
    if unit is None:
        raise ConfigurationError(f"Unrecognized unit: {text!r}")
    return unit


def convert_speed(meters_per_second: float, unit: Unit) -> float:
    """
    Convert a speed in meters per second to the requested unit.

    Args:
        meters_per_second: Speed already converted to m/s
        unit: Target speed unit

    Returns:
        Speed in the target unit

    Raises:
        UnitConversionError: If unit is RAW (the value is already converted,
            so the caller has a logic bug) or not a speed unit at all
    """
    if unit is Unit.METERS_PER_SECOND:
        return meters_per_second
    if unit is Unit.KILOMETERS_PER_HOUR:
        return meters_per_second * 60 * 60 / 1000
    if unit is Unit.MILES_PER_HOUR:
        return meters_per_second * MILES_PER_METER * 60 * 60
    if unit is Unit.RAW:
        raise UnitConversionError(
            "Attempted to convert speed to raw units but this data is already cooked"
        )
    raise UnitConversionError(f"Bad speed unit in conversion: {unit}")


def format_fixed_point(value: int, digits: int) -> str:
    """
    Render an integer scaled by 10**digits as a signed decimal.

    The fractional part is always `digits` wide, so 123456789 with 7 digits
    renders as "12.3456789" and -5 with 1 digit as "-0.5".
    """
    if digits <= 0:
        return str(value)

    divider = 10 ** digits
    whole, frac = divmod(abs(value), divider)
    sign = "-" if value < 0 else ""
    return f"{sign}{whole}.{frac:0{digits}d}"


def format_millis_as_volts(millivolts: int) -> str:
    """Render a millivolt or milliamp reading in whole units with three decimals."""
    return f"{millivolts / 1000.0:.3f}"


def parse_degrees_minutes(text: str) -> float:
    """
    Parse an angle written in degrees.minutes format into decimal degrees.

    For example "-12.58" means -12 degrees 58 minutes.
    """
    combined = int(round(float(text) * 100))

    # Truncate toward zero so negative angles keep their minutes negative
    degrees = int(combined / 100)
    minutes = combined - degrees * 100

    return degrees + minutes / 60.0
