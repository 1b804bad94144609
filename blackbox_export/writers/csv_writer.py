"""
CSV table writers.

The main table holds one row per main-stream frame, optionally followed by
simulated attitude columns and, in merged mode, the GPS columns. The GPS
table holds one row per GPS fix when GPS data isn't merged.
"""

from typing import Optional, Sequence

from .field_formatter import FieldFormatter, format_time
from ..parsers.flight_log import MainFrame
from ..utils.attitude_filter import AttitudeEstimate
from ..utils.io_utils import OutputSink

SEPARATOR = ", "
ATTITUDE_COLUMNS = ["roll", "pitch", "heading"]


def format_attitude(attitude: AttitudeEstimate):
    return [f"{angle:.2f}" for angle in attitude.in_degrees()]


class MainCSVWriter:
    """Writes the main telemetry table."""

    def __init__(self, sink: OutputSink, formatter: FieldFormatter,
                 with_attitude: bool = False, with_gps: bool = False, debug: bool = False):
        """
        Args:
            sink: Destination of the table
            formatter: Field formatter of the current log
            with_attitude: Append roll/pitch/heading columns
            with_gps: Append merged GPS columns
            debug: Append frame type, offset and size to unmerged rows
        """
        self.sink = sink
        self.formatter = formatter
        self.with_attitude = with_attitude
        self.with_gps = with_gps
        self.debug = debug
        self.rows_written = 0

    def write_header(self):
        columns = self.formatter.main_header()

        if self.with_attitude:
            columns += ATTITUDE_COLUMNS

        if self.with_gps:
            columns += self.formatter.gps_header()

        self.sink.write_line(SEPARATOR.join(columns))

    def write_frame(self, frame: MainFrame, frame_time: Optional[int],
                    attitude: Optional[AttitudeEstimate] = None):
        """Write an unmerged main frame row."""
        values = self.formatter.format_main_fields(frame.fields, frame_time)

        if self.with_attitude and attitude is not None:
            values += format_attitude(attitude)

        line = SEPARATOR.join(values)
        if self.debug:
            line += f"{SEPARATOR}{frame.frame_type.value}, offset {frame.offset}, size {frame.size}"

        self.sink.write_line(line)
        self.rows_written += 1

    def write_merge_row(self, main_fields: Optional[Sequence[int]], frame_time: Optional[int],
                        gps_fields: Optional[Sequence[int]],
                        attitude: Optional[AttitudeEstimate] = None):
        """
        Write one merged row.

        Either side may be missing: main columns are left empty for a
        positioning-only row, GPS columns are left empty until the first fix.
        """
        if main_fields is not None:
            values = self.formatter.format_main_fields(main_fields, frame_time)
        else:
            values = [""] * len(self.formatter.tables.main)
            if self.formatter.main_time_index is not None:
                values[self.formatter.main_time_index] = format_time(frame_time)

        if self.with_attitude:
            if main_fields is not None and attitude is not None:
                values += format_attitude(attitude)
            else:
                values += [""] * len(ATTITUDE_COLUMNS)

        if gps_fields is not None:
            values += self.formatter.format_gps_fields(gps_fields)
        else:
            values += [""] * len(self.formatter.gps_header())

        self.sink.write_line(SEPARATOR.join(values))
        self.rows_written += 1


class GPSCSVWriter:
    """Writes the GPS table; the header is written with the first fix."""

    def __init__(self, sink: Optional[OutputSink], formatter: FieldFormatter):
        """
        Args:
            sink: Destination of the table, or None to discard fixes
            formatter: Field formatter of the current log
        """
        self.sink = sink
        self.formatter = formatter
        self.rows_written = 0

    def write_frame(self, fields: Sequence[int], gps_time: Optional[int]):
        if self.sink is None:
            return

        if not self.sink.opened:
            self.sink.write_line(SEPARATOR.join(["time"] + self.formatter.gps_header()))

        values = [format_time(gps_time)] + self.formatter.format_gps_fields(fields)
        self.sink.write_line(SEPARATOR.join(values))
        self.rows_written += 1
