"""
Per-log processing context.

A LogContext carries everything the callbacks of one log share: the
read-only export configuration, the field tables, the output sinks and
writers, the merge buffer and the attitude estimator. A fresh context is
created for every log, so nothing leaks from one log into the next.
"""

from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO, Tuple
import logging

from ..config import ExportConfig
from ..parsers.flight_log import FlightLog
from ..utils.attitude_filter import AttitudeEstimate
from ..utils.error_handling import LogStructureError
from ..utils.io_utils import OutputSink
from ..writers.csv_writer import GPSCSVWriter, MainCSVWriter
from ..writers.event_writer import EventWriter
from ..writers.field_formatter import FieldFormatter
from ..writers.gpx_writer import GPXWriter
from .attitude_estimator import AttitudeEstimator
from .field_classifier import FieldClassifier, FieldTables

logger = logging.getLogger(__name__)


@dataclass
class OutputPaths:
    """Destinations of one exported log; None disables an output."""

    csv: Optional[str] = None
    gps_csv: Optional[str] = None
    gpx: Optional[str] = None
    event: Optional[str] = None
    track_plot: Optional[str] = None

    @classmethod
    def for_log(cls, prefix: str, log_index: int) -> 'OutputPaths':
        """
        Standard file names for a log, numbered from 01.

        Args:
            prefix: Path prefix, usually the input file name without extension
            log_index: Zero-based index of the log within the file
        """
        stem = f"{prefix}.{log_index + 1:02d}"
        return cls(
            csv=f"{stem}.csv",
            gps_csv=f"{stem}.gps.csv",
            gpx=f"{stem}.gps.gpx",
            event=f"{stem}.event",
            track_plot=f"{stem}.gps.png",
        )

    @classmethod
    def for_stdout(cls) -> 'OutputPaths':
        """Only the main table is exported, to standard output."""
        return cls()

    def existing_files(self) -> List[str]:
        paths = [self.csv, self.gps_csv, self.gpx, self.event, self.track_plot]
        return [path for path in paths if path is not None and Path(path).exists()]


@dataclass
class BufferedMainFrame:
    """Main frame held back in merged mode until it can be paired with a fix."""

    fields: Tuple[int, ...]
    frame_time: Optional[int]
    attitude: Optional[AttitudeEstimate] = None


class LogContext:
    """State shared by all callbacks while exporting one log."""

    def __init__(self, config: ExportConfig, paths: OutputPaths,
                 main_stream: Optional[TextIO] = None):
        """
        Args:
            config: Export configuration (not modified)
            paths: Output destinations of this log
            main_stream: Stream receiving the main table instead of `paths.csv`
        """
        self.config = config
        self.paths = paths

        if main_stream is not None:
            self.main_sink = OutputSink(stream=main_stream)
        else:
            self.main_sink = OutputSink(paths.csv)
        self.gps_sink = OutputSink(paths.gps_csv) if paths.gps_csv else None
        self.gpx_sink = OutputSink(paths.gpx) if paths.gpx else None
        self.event_sink = OutputSink(paths.event) if paths.event else None

        self.log: Optional[FlightLog] = None
        self.tables: Optional[FieldTables] = None
        self.formatter: Optional[FieldFormatter] = None
        self.attitude: Optional[AttitudeEstimator] = None
        self.merged = False

        self.main_writer: Optional[MainCSVWriter] = None
        self.gps_writer: Optional[GPSCSVWriter] = None
        self.event_writer: Optional[EventWriter] = None
        self.gpx_writer: Optional[GPXWriter] = None

        # Merge state
        self.last_frame_time: Optional[int] = None
        self.buffered_frame: Optional[BufferedMainFrame] = None
        self.gps_payload: Optional[Tuple[int, ...]] = None

        self._closed = False

    @property
    def debug(self) -> bool:
        return self.config.debug

    @property
    def raw(self) -> bool:
        return self.config.raw

    def prepare(self, log: FlightLog):
        """
        Set up tables and writers once the log header is known, and write the
        main table header.

        Raises:
            LogStructureError: If the log defines no main fields
            OutputSinkError: If the main table can't be created
        """
        if log.main_field_count == 0:
            raise LogStructureError("No fields found in log, is it missing its header?")

        self.log = log

        if self.config.simulate_imu:
            self.attitude = AttitudeEstimator.for_log(
                log, self.config.imu_ignore_mag, self.config.magnetic_declination
            )

        self.merged = self.config.merge_gps and log.gps_field_count > 0

        classifier = FieldClassifier(
            unit_vbat=self.config.unit_vbat,
            unit_amperage=self.config.unit_amperage,
            unit_gps_speed=self.config.unit_gps_speed,
        )
        self.tables = classifier.classify(log)
        self.formatter = FieldFormatter(log, self.tables, raw=self.config.raw)

        self.main_writer = MainCSVWriter(
            self.main_sink,
            self.formatter,
            with_attitude=self.attitude is not None,
            with_gps=self.merged,
            debug=self.config.debug and not self.merged,
        )
        self.gps_writer = GPSCSVWriter(self.gps_sink, self.formatter)
        self.event_writer = EventWriter(self.event_sink)
        self.gpx_writer = GPXWriter(self.gpx_sink)

        self.main_writer.write_header()

        logger.debug(f"Prepared log with {log.main_field_count} main fields, "
                     f"{log.gps_field_count} GPS fields, merged={self.merged}, "
                     f"attitude={self.attitude is not None}")

    @property
    def track_points(self) -> list:
        return self.gpx_writer.points if self.gpx_writer is not None else []

    def close(self):
        """Close every sink exactly once, even if closing one of them fails."""
        if self._closed:
            return
        self._closed = True

        with ExitStack() as stack:
            for sink in (self.main_sink, self.gps_sink, self.event_sink):
                if sink is not None:
                    stack.callback(sink.close)

            if self.gpx_writer is not None:
                stack.callback(self.gpx_writer.close)
            elif self.gpx_sink is not None:
                stack.callback(self.gpx_sink.close)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
