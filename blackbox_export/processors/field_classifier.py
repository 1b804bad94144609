"""
Field classifier.

Assigns a semantic type and display unit to every field of a log once its
field definitions are known. The resulting tables are immutable for the rest
of the log and shared read-only by all writers.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple
import logging

from ..parsers.flight_log import FlightLog
from ..utils.units import Unit


class GPSFieldType(Enum):
    """How the value of a field should be interpreted for display."""

    INTEGER = "integer"
    DEGREES_TIMES_10 = "degrees*10"  # headings
    COORDINATE_DEGREES_TIMES_10000000 = "degrees*10^7"
    METERS_PER_SECOND_TIMES_100 = "m/s*100"
    METERS = "meters"


# Exact, case-sensitive field name matches
GPS_FIELD_TYPES: Dict[str, GPSFieldType] = {
    'GPS_coord[0]': GPSFieldType.COORDINATE_DEGREES_TIMES_10000000,
    'GPS_coord[1]': GPSFieldType.COORDINATE_DEGREES_TIMES_10000000,
    'GPS_altitude': GPSFieldType.METERS,
    'GPS_speed': GPSFieldType.METERS_PER_SECOND_TIMES_100,
    'GPS_ground_course': GPSFieldType.DEGREES_TIMES_10,
}


@dataclass(frozen=True)
class FieldDescriptor:
    """Display metadata of one field."""

    name: str
    signed: bool = False
    field_type: GPSFieldType = GPSFieldType.INTEGER
    unit: Unit = Unit.RAW

    @property
    def header(self) -> str:
        """Column name, annotated with the unit when it isn't raw."""
        if self.unit is Unit.RAW:
            return self.name
        return f"{self.name} ({self.unit.label})"


@dataclass(frozen=True)
class FieldTables:
    """Per-log lookup tables indexed by field position."""

    main: Tuple[FieldDescriptor, ...] = ()
    gps: Tuple[FieldDescriptor, ...] = ()


def classify_gps_field(name: str) -> GPSFieldType:
    """Semantic type of a GPS field from its name; unknown names are plain integers."""
    return GPS_FIELD_TYPES.get(name, GPSFieldType.INTEGER)


class FieldClassifier:
    """Builds the per-log field tables from field names and unit settings."""

    def __init__(self, unit_vbat: Unit = Unit.VOLTS, unit_amperage: Unit = Unit.AMPS,
                 unit_gps_speed: Unit = Unit.METERS_PER_SECOND):
        """
        Initialize the classifier.

        Args:
            unit_vbat: Display unit of the battery voltage field
            unit_amperage: Display unit of the current sensor field
            unit_gps_speed: Display unit of the GPS ground speed field
        """
        self.logger = logging.getLogger(__name__)
        self.unit_vbat = unit_vbat
        self.unit_amperage = unit_amperage
        self.unit_gps_speed = unit_gps_speed

    def classify(self, log: FlightLog) -> FieldTables:
        """
        Classify every main and GPS field of a log.

        Args:
            log: Log descriptor reported at metadata-ready time

        Returns:
            FieldTables with one descriptor per field position
        """
        main_units = self._main_field_units(log)
        gps_units = self._gps_field_units(log)

        main = tuple(
            FieldDescriptor(
                name=name,
                signed=log.main_field_signed[i],
                unit=main_units.get(i, Unit.RAW),
            )
            for i, name in enumerate(log.main_field_names)
        )

        gps = tuple(
            FieldDescriptor(
                name=name,
                signed=True,
                field_type=classify_gps_field(name),
                unit=gps_units.get(i, Unit.RAW),
            )
            for i, name in enumerate(log.gps_field_names)
        )

        annotated = [d.header for d in main + gps if d.unit is not Unit.RAW]
        self.logger.debug(f"Classified {len(main)} main and {len(gps)} GPS fields, "
                          f"unit-annotated: {annotated}")

        return FieldTables(main=main, gps=gps)

    def _main_field_units(self, log: FlightLog) -> Dict[int, Unit]:
        units = {}
        indexes = log.main_field_indexes

        if indexes.vbat_latest is not None:
            units[indexes.vbat_latest] = self.unit_vbat

        if indexes.amperage_latest is not None:
            units[indexes.amperage_latest] = self.unit_amperage

        return units

    def _gps_field_units(self, log: FlightLog) -> Dict[int, Unit]:
        speed_index: Optional[int] = log.gps_field_indexes.speed
        if speed_index is None:
            return {}
        return {speed_index: self.unit_gps_speed}
