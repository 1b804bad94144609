"""
Integrity accountant.

Derives the end-of-log integrity report from the statistics the parsing
engine accumulated: frame counts and sizes per frame type, data rate,
corrupted and missing loop iterations, and optionally the value range of
every main field.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

import pandas as pd

from ..parsers.flight_log import FlightLog, FrameType

logger = logging.getLogger(__name__)

REPORTED_FRAME_TYPES = [
    FrameType.INTRA, FrameType.INTER, FrameType.GPS_HOME, FrameType.GPS, FrameType.EVENT
]
LIMITS_COLUMNS = ['name', 'min', 'max', 'range']


def format_clock(milliseconds: int) -> str:
    """Render a duration as MM:SS.mmm."""
    seconds, millis = divmod(milliseconds, 1000)
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes:02d}:{seconds:02d}.{millis:03d}"


def count_missing_iterations(expected: int, good: int, intentionally_absent: int) -> int:
    """Loop iterations neither logged nor skipped on purpose; never negative."""
    return max(0, expected - good - intentionally_absent)


def round_up_to_hundred(value: int) -> int:
    return (value + 99) // 100 * 100


@dataclass
class DataRate:
    """Logging throughput over the duration of the log."""

    frames_per_second: int
    bytes_per_second: int
    baud: int

    @classmethod
    def compute(cls, good_frames: int, total_bytes: int,
                interval_ms: int, raw: bool = False) -> Optional['DataRate']:
        """
        Compute the data rate.

        Returns:
            The rate, or None when it's unknown because the log has no
            measurable duration or timing isn't trusted (raw mode)
        """
        if interval_ms <= 0 or raw:
            return None

        return cls(
            frames_per_second=good_frames * 1000 // interval_ms,
            bytes_per_second=total_bytes * 1000 // interval_ms,
            baud=round_up_to_hundred(total_bytes * 8000 // interval_ms),
        )


@dataclass
class FrameTypeSummary:
    frame_type: FrameType
    count: int
    total_bytes: int

    @property
    def average_bytes(self) -> float:
        return self.total_bytes / self.count if self.count else 0.0


@dataclass
class IntegrityReport:
    """Integrity statistics of one log."""

    log_index: int
    log_count: int
    start_time_ms: Optional[int]
    end_time_ms: Optional[int]
    interval_ms: int
    frame_summaries: List[FrameTypeSummary]
    good_frames: int
    good_bytes: int
    total_bytes: int
    expected_iterations: int
    missing_iterations: int
    intentionally_absent_iterations: int
    corrupt_frames: int
    desync_frames: int
    unreadable_iterations: int
    data_rate: Optional[DataRate]
    raw: bool = False
    field_limits: Optional[pd.DataFrame] = field(default=None, repr=False)

    @property
    def timing_known(self) -> bool:
        return self.interval_ms > 0 and not self.raw

    def _share(self, iterations: int) -> str:
        duration_ms = iterations * self.interval_ms // self.expected_iterations
        percent = iterations / self.expected_iterations * 100
        return f"({duration_ms}ms, {percent:.2f}%)"

    def render(self) -> str:
        """Render the report as human-readable text."""
        lines = []

        heading = f"Log {self.log_index + 1} of {self.log_count}"
        if self.timing_known:
            heading += (f", start {format_clock(self.start_time_ms)}, "
                        f"end {format_clock(self.end_time_ms)}, "
                        f"duration {format_clock(self.interval_ms)}")
            lines += [heading, ""]
        else:
            lines.append(heading)

        lines.append("Statistics")
        for summary in self.frame_summaries:
            if summary.count:
                lines.append(f"{summary.frame_type.value} frames {summary.count:7d} "
                             f"{summary.average_bytes:6.1f} bytes avg "
                             f"{summary.total_bytes:8d} bytes total")

        if self.good_frames:
            lines.append(f"Frames {self.good_frames:9d} {self.good_bytes / self.good_frames:6.1f} "
                         f"bytes avg {self.good_bytes:8d} bytes total")
        else:
            lines.append(f"Frames {0:8d}")

        if self.data_rate is not None:
            lines.append(f"Data rate {self.data_rate.frames_per_second:4d}Hz "
                         f"{self.data_rate.bytes_per_second:6d} bytes/s "
                         f"{self.data_rate.baud:10d} baud")
        else:
            lines.append("Data rate: Unknown, no timing information available.")

        damaged = self.corrupt_frames or self.missing_iterations or self.intentionally_absent_iterations
        if self.expected_iterations and damaged:
            lines.append("")

            if self.corrupt_frames or self.desync_frames:
                lines.append(f"{self.corrupt_frames} frames failed to decode, rendering "
                             f"{self.unreadable_iterations} loop iterations unreadable.")
            if self.missing_iterations:
                lines.append(f"{self.missing_iterations} iterations are missing in total "
                             f"{self._share(self.missing_iterations)}")
            if self.intentionally_absent_iterations:
                lines.append(f"{self.intentionally_absent_iterations} loop iterations weren't "
                             f"logged because of your blackbox_rate settings "
                             f"{self._share(self.intentionally_absent_iterations)}")

        if self.field_limits is not None:
            lines += ["", "", "    Field name          Min          Max        Range",
                      "-" * 53]
            for row in self.field_limits.itertuples(index=False):
                lines.append(f"{row.name:>14} {row.min:12d} {row.max:12d} {row.range:12d}")

        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'log_index': self.log_index,
            'log_count': self.log_count,
            'start_time_ms': self.start_time_ms,
            'end_time_ms': self.end_time_ms,
            'interval_ms': self.interval_ms,
            'frames': {
                summary.frame_type.value: {'count': summary.count, 'bytes': summary.total_bytes}
                for summary in self.frame_summaries
            },
            'good_frames': self.good_frames,
            'good_bytes': self.good_bytes,
            'total_bytes': self.total_bytes,
            'expected_iterations': self.expected_iterations,
            'missing_iterations': self.missing_iterations,
            'intentionally_absent_iterations': self.intentionally_absent_iterations,
            'corrupt_frames': self.corrupt_frames,
            'unreadable_iterations': self.unreadable_iterations,
            'data_rate': None,
        }

        if self.data_rate is not None:
            result['data_rate'] = {
                'frames_per_second': self.data_rate.frames_per_second,
                'bytes_per_second': self.data_rate.bytes_per_second,
                'baud': self.data_rate.baud,
            }

        if self.field_limits is not None:
            result['field_limits'] = self.field_limits.to_dict('records')

        return result


class IntegrityAccountant:
    """Builds integrity reports from engine statistics."""

    def __init__(self, raw: bool = False, print_limits: bool = False):
        """
        Args:
            raw: Raw mode; timing information is not trusted
            print_limits: Include the per-field value range table
        """
        self.raw = raw
        self.print_limits = print_limits

    def compute(self, log: FlightLog, log_index: int) -> IntegrityReport:
        """
        Compute the integrity report of a parsed log.

        Args:
            log: Log descriptor holding the engine statistics
            log_index: Zero-based index of the log within its file

        Returns:
            IntegrityReport for the log
        """
        stats = log.stats
        indexes = log.main_field_indexes

        time_stats = stats.field_stats(indexes.time)
        iteration_stats = stats.field_stats(indexes.loop_iteration)

        start_time_ms = time_stats.min // 1000 if time_stats.min is not None else None
        end_time_ms = time_stats.max // 1000 if time_stats.max is not None else None
        interval_ms = time_stats.range // 1000

        intra = stats.frame[FrameType.INTRA]
        inter = stats.frame[FrameType.INTER]
        good_frames = intra.valid_count + inter.valid_count
        good_bytes = intra.bytes + inter.bytes

        if iteration_stats.min is not None:
            expected_iterations = iteration_stats.range + 1
        else:
            expected_iterations = 0

        missing = count_missing_iterations(
            expected_iterations, good_frames, stats.intentionally_absent_iterations
        )

        summaries = [
            FrameTypeSummary(frame_type, stats.frame[frame_type].valid_count,
                             stats.frame[frame_type].bytes)
            for frame_type in REPORTED_FRAME_TYPES
        ]

        report = IntegrityReport(
            log_index=log_index,
            log_count=log.log_count,
            start_time_ms=start_time_ms,
            end_time_ms=end_time_ms,
            interval_ms=interval_ms,
            frame_summaries=summaries,
            good_frames=good_frames,
            good_bytes=good_bytes,
            total_bytes=stats.total_bytes,
            expected_iterations=expected_iterations,
            missing_iterations=missing,
            intentionally_absent_iterations=stats.intentionally_absent_iterations,
            corrupt_frames=stats.total_corrupt_frames,
            desync_frames=intra.desync_count + inter.desync_count,
            unreadable_iterations=(intra.desync_count + intra.corrupt_count
                                   + inter.desync_count + inter.corrupt_count),
            data_rate=DataRate.compute(good_frames, stats.total_bytes, interval_ms, self.raw),
            raw=self.raw,
            field_limits=self.field_limits(log) if self.print_limits else None,
        )

        logger.debug(f"Log {log_index + 1}: {good_frames} good frames, "
                     f"{missing} missing iterations, {stats.total_corrupt_frames} corrupt frames")

        return report

    @staticmethod
    def field_limits(log: FlightLog) -> pd.DataFrame:
        """Value range of every main field as a DataFrame (name, min, max, range)."""
        rows = []
        for i, name in enumerate(log.main_field_names):
            field_stats = log.stats.field_stats(i)
            rows.append({
                'name': name,
                'min': field_stats.min if field_stats.min is not None else 0,
                'max': field_stats.max if field_stats.max is not None else 0,
                'range': field_stats.range,
            })

        return pd.DataFrame(rows, columns=LIMITS_COLUMNS)
