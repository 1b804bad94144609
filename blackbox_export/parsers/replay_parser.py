"""
Replay parsing engine.

Replays frames that were already decoded from a binary flight log and stored
as JSON, driving a FrameHandler exactly as a live decoder would and keeping
the same per-log statistics.

Document layout::

    {"logs": [{
        "main_fields": ["loopIteration", "time", ...],
        "main_signed": [false, false, ...],
        "gps_fields": ["time", "GPS_coord[0]", ...],
        "sys_config": {"acc_1g": 4096, ...},
        "intentionally_absent_iterations": 0,
        "records": [
            {"type": "I", "valid": true, "fields": [...], "offset": 0, "size": 31},
            {"type": "P", "valid": false, "fields": null, "size": 4, "desync": true},
            {"type": "E", "event": {"id": 0, "time": 123456}, "size": 6}
        ]
    }]}
"""

from typing import Dict, Any, List, Optional
from pathlib import Path
import logging

from .base import BaseLogParser, FrameHandler
from .flight_log import (
    FlightLog, FlightLogEvent, FrameType, SysConfig, make_frame
)
from ..utils.io_utils import FileHandler

logger = logging.getLogger(__name__)


class ReplayLogParser(BaseLogParser):
    """Parsing engine that replays pre-decoded frames."""

    def __init__(self, document: Dict[str, Any], config: Optional[Dict[str, Any]] = None):
        """
        Initialize the replay parser.

        Args:
            document: Decoded frame dump (see module docstring)
            config: Optional parser configuration
        """
        super().__init__(config)
        self.logs: List[Dict[str, Any]] = list(document.get('logs', []))
        self._flight_log: Optional[FlightLog] = None

    @classmethod
    def from_file(cls, file_path: str, config: Optional[Dict[str, Any]] = None) -> 'ReplayLogParser':
        """
        Load a frame dump from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file holds no log list
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Log file not found: {file_path}")

        document = FileHandler().load_json(str(path))
        if not isinstance(document, dict) or 'logs' not in document:
            raise ValueError(f"No flight logs found in {file_path}")

        return cls(document, config)

    @property
    def log_count(self) -> int:
        return len(self.logs)

    @property
    def flight_log(self) -> Optional[FlightLog]:
        return self._flight_log

    def log_sizes(self):
        sizes = []
        start = 0
        for log_data in self.logs:
            size = sum(int(record.get('size', 0)) for record in log_data.get('records', []))
            sizes.append((start, size))
            start += size
        return sizes

    def parse(self, log_index: int, handler: FrameHandler, raw: bool = False) -> bool:
        if not 0 <= log_index < self.log_count:
            raise IndexError(f"Log index {log_index} out of range (file has {self.log_count} logs)")

        log_data = self.logs[log_index]
        log = self._create_flight_log(log_data)
        self._flight_log = log

        handler.on_metadata_ready(log)

        for record in log_data.get('records', []):
            try:
                frame_type = FrameType(record.get('type'))
            except ValueError:
                logger.error(f"Unknown frame type {record.get('type')!r} in log {log_index + 1}, "
                             f"stream is no longer decodable")
                return False

            if frame_type is FrameType.EVENT:
                self._replay_event(log, record, handler)
            else:
                self._replay_frame(log, frame_type, record, handler, raw)

        return True

    def _create_flight_log(self, log_data: Dict[str, Any]) -> FlightLog:
        log = FlightLog(
            main_field_names=list(log_data.get('main_fields', [])),
            gps_field_names=list(log_data.get('gps_fields', [])),
            main_field_signed=[bool(v) for v in log_data.get('main_signed', [])],
            sys_config=SysConfig(**log_data.get('sys_config', {})),
            log_count=self.log_count,
        )
        log.stats.intentionally_absent_iterations = int(log_data.get('intentionally_absent_iterations', 0))
        return log

    def _replay_frame(self, log: FlightLog, frame_type: FrameType, record: Dict[str, Any],
                      handler: FrameHandler, raw: bool):
        valid = bool(record.get('valid', True))
        fields = record.get('raw_fields') if raw and 'raw_fields' in record else record.get('fields')
        size = int(record.get('size', 0))

        frame = make_frame(frame_type, valid and fields is not None, fields,
                           int(record.get('offset', 0)), size)

        stats = log.stats
        stats.total_bytes += size
        frame_stats = stats.frame[frame_type]

        if frame.valid:
            frame_stats.valid_count += 1
            frame_stats.bytes += size

            if frame_type.is_main:
                for field_stats, value in zip(stats.field_ranges, frame.fields):
                    field_stats.update(value)
        else:
            if record.get('desync'):
                frame_stats.desync_count += 1
            else:
                frame_stats.corrupt_count += 1
            stats.total_corrupt_frames += 1

        handler.on_frame_ready(log, frame)

    def _replay_event(self, log: FlightLog, record: Dict[str, Any], handler: FrameHandler):
        event_data = dict(record.get('event', {}))
        size = int(record.get('size', 0))
        valid = bool(record.get('valid', True)) and 'id' in event_data

        log.stats.total_bytes += size
        frame_stats = log.stats.frame[FrameType.EVENT]

        if valid:
            frame_stats.valid_count += 1
            frame_stats.bytes += size
        else:
            frame_stats.corrupt_count += 1
            log.stats.total_corrupt_frames += 1

        handler.on_frame_ready(log, make_frame(FrameType.EVENT, valid, (), int(record.get('offset', 0)), size))

        if valid:
            event_id = int(event_data.pop('id'))
            handler.on_event(log, FlightLogEvent(event_id, event_data))
