"""
Stream merge engine.

Receives the engine callbacks of one log and turns them into output rows.

In independent mode main frames go to the main table and GPS fixes to the
GPS table as they arrive. In merged mode each main frame is held back until
the next main frame or GPS fix arrives, so that the main table can carry the
most recent fix on the same row:

    M0  M10  G10  M20   ->   M0  + (no fix)
                             M10 + G10
                             M20 + G10
"""

from dataclasses import replace
from typing import Optional, Sequence
import logging

from ..parsers.base import FrameHandler
from ..parsers.flight_log import (
    FlightLog, FlightLogEvent, Frame, GPSFrame, MainFrame
)
from .context import BufferedMainFrame, LogContext

logger = logging.getLogger(__name__)


class StreamMerger(FrameHandler):
    """Frame handler writing one log through its LogContext."""

    def __init__(self, context: LogContext):
        self.context = context
        self.main_frames = 0
        self.gps_frames = 0
        self.skipped_frames = 0
        self.events = 0
        self._finished = False

    def on_metadata_ready(self, log: FlightLog):
        self.context.prepare(log)

    def on_frame_ready(self, log: FlightLog, frame: Frame):
        if isinstance(frame, MainFrame):
            self._on_main_frame(log, frame)
        elif isinstance(frame, GPSFrame):
            self._on_gps_frame(log, frame)
        # Home and event frames carry nothing for the exported tables

    def on_event(self, log: FlightLog, event: FlightLogEvent):
        self.context.event_writer.write_event(event, self.context.last_frame_time)
        self.events += 1

    def finish(self):
        """Flush the buffered main frame at the end of the log, at most once."""
        if self._finished:
            return
        self._finished = True

        if self.context.merged and self.context.buffered_frame is not None:
            self._flush_buffered_frame()

    def _is_usable(self, frame: Frame, allow_raw: bool = True) -> bool:
        """
        Whether a frame has fields worth writing.

        Frames that failed to decode are never usable. Frames decoded from
        corrupted state are usable only in raw mode, and only when
        `allow_raw` is set.
        """
        if frame.valid and frame.fields is not None:
            return True

        if frame.fields is not None and allow_raw and self.context.raw:
            return True

        if self.context.debug:
            frame_type = frame.frame_type.value
            if frame.fields is None:
                logger.debug(f"Failed to decode {frame_type} frame, offset {frame.offset}, "
                             f"size {frame.size}")
            else:
                logger.debug(f"{frame_type} frame unusable due to prior corruption, "
                             f"offset {frame.offset}, size {frame.size}")
        return False

    def _on_main_frame(self, log: FlightLog, frame: MainFrame):
        context = self.context

        if not self._is_usable(frame):
            self.skipped_frames += 1
            return

        frame_time = None
        attitude = None

        if frame.valid:
            time_index = log.main_field_indexes.time
            if time_index is not None:
                frame_time = frame.fields[time_index] & 0xFFFFFFFF
                context.last_frame_time = frame_time

            if context.attitude is not None and frame_time is not None:
                attitude = context.attitude.update(frame.fields, frame_time)

        if attitude is None and context.attitude is not None:
            attitude = context.attitude.attitude

        if context.merged:
            if context.buffered_frame is not None:
                self._flush_buffered_frame()

            context.buffered_frame = BufferedMainFrame(
                fields=frame.fields,
                frame_time=frame_time,
                attitude=replace(attitude) if attitude is not None else None,
            )
        else:
            context.main_writer.write_frame(frame, frame_time, attitude)

        self.main_frames += 1

    def _on_gps_frame(self, log: FlightLog, frame: GPSFrame):
        context = self.context

        if not self._is_usable(frame, allow_raw=False):
            self.skipped_frames += 1
            return

        gps_time = self._effective_gps_time(log, frame.fields)

        if context.merged:
            # A fix from a later iteration closes the buffered main frame
            if context.buffered_frame is not None and gps_time != context.last_frame_time:
                self._flush_buffered_frame()

            context.gps_payload = frame.fields

            if context.buffered_frame is not None:
                self._flush_buffered_frame()
            else:
                context.main_writer.write_merge_row(None, gps_time, context.gps_payload)
        else:
            context.gps_writer.write_frame(frame.fields, gps_time)

        self._add_track_point(log, frame.fields, gps_time)
        self.gps_frames += 1

    def _effective_gps_time(self, log: FlightLog, fields: Sequence[int]) -> Optional[int]:
        """
        Time of a GPS fix.

        Fixes without their own time, or stamped with the time of the last
        main frame, belong to that main frame's iteration.
        """
        time_index = log.gps_field_indexes.time
        last_frame_time = self.context.last_frame_time

        if time_index is None:
            return last_frame_time

        gps_time = fields[time_index] & 0xFFFFFFFF
        if gps_time == last_frame_time:
            return last_frame_time
        return gps_time

    def _add_track_point(self, log: FlightLog, fields: Sequence[int], gps_time: Optional[int]):
        indexes = log.gps_field_indexes
        if not indexes.has_track:
            return

        lat_index, lon_index = indexes.coord
        self.context.gpx_writer.add_point(
            gps_time, fields[lat_index], fields[lon_index], fields[indexes.altitude]
        )

    def _flush_buffered_frame(self):
        context = self.context
        buffered = context.buffered_frame
        context.buffered_frame = None

        context.main_writer.write_merge_row(
            buffered.fields, buffered.frame_time, context.gps_payload, buffered.attitude
        )
