"""
Data model shared between the parsing engine and the export pipeline.

A FlightLog describes one decoded sub-log: its field definitions, the
positions of well-known fields, calibration constants and the running
statistics the engine keeps while parsing. Frames and events are the
transient records the engine hands to the pipeline one at a time.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple, Union
import math


class FrameType(Enum):
    """Frame type tag as it appears in the binary log."""

    INTRA = "I"
    INTER = "P"
    GPS = "G"
    GPS_HOME = "H"
    EVENT = "E"

    @property
    def is_main(self) -> bool:
        return self in (FrameType.INTRA, FrameType.INTER)


@dataclass(frozen=True)
class BaseFrame:
    """Fields common to every decoded frame attempt."""

    valid: bool
    fields: Optional[Tuple[int, ...]]
    offset: int = 0
    size: int = 0


@dataclass(frozen=True)
class MainFrame(BaseFrame):
    """Main-loop sample; `frame_type` is INTRA (I) or INTER (P)."""

    frame_type: FrameType = FrameType.INTER


@dataclass(frozen=True)
class GPSFrame(BaseFrame):
    """Positioning-sensor fix."""

    frame_type: FrameType = FrameType.GPS


@dataclass(frozen=True)
class GPSHomeFrame(BaseFrame):
    """GPS home position, used by the engine as a predictor base."""

    frame_type: FrameType = FrameType.GPS_HOME


@dataclass(frozen=True)
class EventFrame(BaseFrame):
    """Frame carrying an out-of-band event."""

    frame_type: FrameType = FrameType.EVENT


Frame = Union[MainFrame, GPSFrame, GPSHomeFrame, EventFrame]


def make_frame(frame_type: Union[FrameType, str], valid: bool,
               fields: Optional[Sequence[int]], offset: int = 0, size: int = 0) -> Frame:
    """Build the frame variant matching a frame type tag."""
    frame_type = FrameType(frame_type)
    values = tuple(int(v) for v in fields) if fields is not None else None

    if frame_type.is_main:
        return MainFrame(valid, values, offset, size, frame_type)
    if frame_type is FrameType.GPS:
        return GPSFrame(valid, values, offset, size)
    if frame_type is FrameType.GPS_HOME:
        return GPSHomeFrame(valid, values, offset, size)
    return EventFrame(valid, values, offset, size)


class EventType(Enum):
    """Identifiers of the out-of-band events a log can carry."""

    SYNC_BEEP = 0
    AUTOTUNE_CYCLE_START = 10
    AUTOTUNE_CYCLE_RESULT = 11
    AUTOTUNE_TARGETS = 12
    LOG_END = 255


AUTOTUNE_FLAG_OVERSHOT = 1
AUTOTUNE_FLAG_TIMEDOUT = 2


@dataclass(frozen=True)
class FlightLogEvent:
    """
    Out-of-band event.

    `event_id` is kept as the raw identifier so unknown events can still be
    reported; `data` holds the payload fields of the event kind (for example
    `time` for a sync beep, `phase`/`cycle`/`p`/`i`/`d` for an autotune
    cycle start).
    """

    event_id: int
    data: Dict[str, Union[int, float]] = field(default_factory=dict)

    @property
    def event_type(self) -> Optional[EventType]:
        try:
            return EventType(self.event_id)
        except ValueError:
            return None


def _find(names: Sequence[str], *candidates: str) -> Optional[int]:
    for candidate in candidates:
        if candidate in names:
            return list(names).index(candidate)
    return None


def _find_axes(names: Sequence[str], *prefixes: str) -> Optional[Tuple[int, int, int]]:
    for prefix in prefixes:
        axes = tuple(_find(names, f"{prefix}[{axis}]") for axis in range(3))
        if all(index is not None for index in axes):
            return axes
    return None


@dataclass(frozen=True)
class MainFieldIndexes:
    """Positions of well-known main-stream fields (None when absent)."""

    loop_iteration: Optional[int] = None
    time: Optional[int] = None
    acc_smooth: Optional[Tuple[int, int, int]] = None
    gyro_adc: Optional[Tuple[int, int, int]] = None
    mag_adc: Optional[Tuple[int, int, int]] = None
    vbat_latest: Optional[int] = None
    amperage_latest: Optional[int] = None

    @classmethod
    def from_names(cls, names: Sequence[str]) -> 'MainFieldIndexes':
        return cls(
            loop_iteration=_find(names, 'loopIteration'),
            time=_find(names, 'time'),
            acc_smooth=_find_axes(names, 'accSmooth'),
            gyro_adc=_find_axes(names, 'gyroADC', 'gyroData'),
            mag_adc=_find_axes(names, 'magADC'),
            vbat_latest=_find(names, 'vbatLatest'),
            amperage_latest=_find(names, 'amperageLatest'),
        )


@dataclass(frozen=True)
class GPSFieldIndexes:
    """Positions of well-known GPS-stream fields (None when absent)."""

    time: Optional[int] = None
    coord: Tuple[Optional[int], Optional[int]] = (None, None)
    altitude: Optional[int] = None
    speed: Optional[int] = None
    ground_course: Optional[int] = None

    @classmethod
    def from_names(cls, names: Sequence[str]) -> 'GPSFieldIndexes':
        return cls(
            time=_find(names, 'time'),
            coord=(_find(names, 'GPS_coord[0]'), _find(names, 'GPS_coord[1]')),
            altitude=_find(names, 'GPS_altitude'),
            speed=_find(names, 'GPS_speed'),
            ground_course=_find(names, 'GPS_ground_course'),
        )

    @property
    def has_track(self) -> bool:
        """Whether latitude, longitude and altitude are all logged."""
        return None not in self.coord and self.altitude is not None


@dataclass(frozen=True)
class SysConfig:
    """Calibration constants recorded in the log header."""

    acc_1g: int = 4096
    # Radians per microsecond per gyro LSB, default for a 2000 deg/s gyro (16.4 LSB per deg/s)
    gyro_scale: float = math.radians(1 / 16.4) / 1e6
    vbat_scale: int = 110
    current_meter_offset: int = 0
    current_meter_scale: int = 400


@dataclass
class FrameStatistics:
    """Counters the engine keeps for one frame type."""

    valid_count: int = 0
    bytes: int = 0
    desync_count: int = 0
    corrupt_count: int = 0


@dataclass
class FieldStatistics:
    """Running min/max of one main-stream field."""

    min: Optional[int] = None
    max: Optional[int] = None

    def update(self, value: int):
        if self.min is None or value < self.min:
            self.min = value
        if self.max is None or value > self.max:
            self.max = value

    @property
    def range(self) -> int:
        if self.min is None or self.max is None:
            return 0
        return self.max - self.min


@dataclass
class FlightLogStatistics:
    """Statistics accumulated by the engine while parsing one log."""

    total_bytes: int = 0
    total_corrupt_frames: int = 0
    intentionally_absent_iterations: int = 0
    frame: Dict[FrameType, FrameStatistics] = field(
        default_factory=lambda: {frame_type: FrameStatistics() for frame_type in FrameType}
    )
    field_ranges: List[FieldStatistics] = field(default_factory=list)

    def field_stats(self, index: Optional[int]) -> FieldStatistics:
        if index is None or index >= len(self.field_ranges):
            return FieldStatistics()
        return self.field_ranges[index]


@dataclass
class FlightLog:
    """
    Descriptor of one decoded sub-log, owned by the parsing engine.

    Field indexes are derived from the field names unless given explicitly.
    """

    main_field_names: List[str]
    gps_field_names: List[str] = field(default_factory=list)
    main_field_signed: List[bool] = field(default_factory=list)
    sys_config: SysConfig = field(default_factory=SysConfig)
    log_count: int = 1
    stats: FlightLogStatistics = field(default_factory=FlightLogStatistics)
    main_field_indexes: Optional[MainFieldIndexes] = None
    gps_field_indexes: Optional[GPSFieldIndexes] = None

    def __post_init__(self):
        if self.main_field_indexes is None:
            self.main_field_indexes = MainFieldIndexes.from_names(self.main_field_names)
        if self.gps_field_indexes is None:
            self.gps_field_indexes = GPSFieldIndexes.from_names(self.gps_field_names)
        if len(self.main_field_signed) < len(self.main_field_names):
            missing = len(self.main_field_names) - len(self.main_field_signed)
            self.main_field_signed = list(self.main_field_signed) + [False] * missing
        if not self.stats.field_ranges:
            self.stats.field_ranges = [FieldStatistics() for _ in self.main_field_names]

    @property
    def main_field_count(self) -> int:
        return len(self.main_field_names)

    @property
    def gps_field_count(self) -> int:
        return len(self.gps_field_names)

    def vbat_adc_to_millivolts(self, vbat_adc: int) -> int:
        """Convert a battery voltage ADC reading to millivolts."""
        # 12-bit ADC, 3.3V reference, vbat_scale premultiplied by 100
        return ((vbat_adc & 0xFFFF) * 330 * self.sys_config.vbat_scale) // 0xFFF

    def amperage_adc_to_milliamps(self, amperage_adc: int) -> int:
        """Convert a current sensor ADC reading to milliamps."""
        millivolts = ((amperage_adc & 0xFFFF) * 3300) // 0xFFF
        millivolts -= self.sys_config.current_meter_offset

        return int(millivolts * 10000 / self.sys_config.current_meter_scale)
