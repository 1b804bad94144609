"""
Field value formatting for exported tables.

Renders raw field values according to the per-log field tables: semantic
GPS types, battery/current units and signedness.
"""

from typing import List, Optional, Sequence

from ..parsers.flight_log import FlightLog
from ..processors.field_classifier import FieldTables, GPSFieldType
from ..utils.units import (
    Unit, convert_speed, format_fixed_point, format_millis_as_volts
)

UNKNOWN_TIME = "X"


def format_time(frame_time: Optional[int]) -> str:
    """Render a frame time in microseconds, or the unknown-time sentinel."""
    if frame_time is None:
        return UNKNOWN_TIME
    return str(frame_time & 0xFFFFFFFF)


class FieldFormatter:
    """Formats main and GPS field values of one log."""

    def __init__(self, log: FlightLog, tables: FieldTables, raw: bool = False):
        """
        Args:
            log: Log descriptor (provides ADC calibration and the time index)
            tables: Field tables produced by the FieldClassifier
            raw: Raw mode; raw-unit main values are always rendered signed
        """
        self.log = log
        self.tables = tables
        self.raw = raw
        self.main_time_index = log.main_field_indexes.time
        self.gps_time_index = log.gps_field_indexes.time

    def main_header(self) -> List[str]:
        return [descriptor.header for descriptor in self.tables.main]

    def gps_header(self) -> List[str]:
        """GPS column names, minus the GPS time field."""
        return [
            descriptor.header
            for i, descriptor in enumerate(self.tables.gps)
            if i != self.gps_time_index
        ]

    def format_main_fields(self, fields: Sequence[int], frame_time: Optional[int]) -> List[str]:
        """
        Render the fields of a main frame.

        The time column shows `frame_time` rather than the value stored in the
        frame, so callers can mark the time of an invalid frame as unknown.
        """
        values = []

        for i, descriptor in enumerate(self.tables.main):
            if i == self.main_time_index:
                values.append(format_time(frame_time))
                continue

            value = fields[i]
            unit = descriptor.unit

            if unit is Unit.VOLTS:
                values.append(format_millis_as_volts(self.log.vbat_adc_to_millivolts(value)))
            elif unit is Unit.MILLIVOLTS:
                values.append(str(self.log.vbat_adc_to_millivolts(value)))
            elif unit is Unit.AMPS:
                values.append(format_millis_as_volts(self.log.amperage_adc_to_milliamps(value)))
            elif unit is Unit.MILLIAMPS:
                values.append(str(self.log.amperage_adc_to_milliamps(value)))
            elif descriptor.signed or self.raw:
                values.append(f"{value:3d}")
            else:
                values.append(f"{value & 0xFFFFFFFF:3d}")

        return values

    def format_gps_fields(self, fields: Sequence[int]) -> List[str]:
        """Render the fields of a GPS frame, minus its time field."""
        values = []

        for i, descriptor in enumerate(self.tables.gps):
            if i == self.gps_time_index:
                continue
            values.append(self.format_gps_value(fields[i], descriptor.field_type, descriptor.unit))

        return values

    @staticmethod
    def format_gps_value(value: int, field_type: GPSFieldType, unit: Unit = Unit.RAW) -> str:
        if field_type is GPSFieldType.COORDINATE_DEGREES_TIMES_10000000:
            return format_fixed_point(value, 7)

        if field_type is GPSFieldType.DEGREES_TIMES_10:
            return format_fixed_point(value, 1)

        if field_type is GPSFieldType.METERS_PER_SECOND_TIMES_100:
            if unit is Unit.RAW:
                return str(value)
            if unit is Unit.METERS_PER_SECOND:
                return format_fixed_point(value, 2)
            return f"{convert_speed(value / 100.0, unit):.2f}"

        return str(value)
