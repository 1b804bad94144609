"""
Event log writer.

Renders each out-of-band event as one line of structured text.
"""

from typing import Optional

from .field_formatter import format_time
from ..parsers.flight_log import (
    FlightLogEvent, EventType, AUTOTUNE_FLAG_OVERSHOT, AUTOTUNE_FLAG_TIMEDOUT
)
from ..utils.io_utils import OutputSink


def _bool_text(flag: bool) -> str:
    return "true" if flag else "false"


def format_event(event: FlightLogEvent, last_frame_time: Optional[int]) -> str:
    """
    Render an event.

    Sync beeps carry their own time; every other event is stamped with the
    time of the last main frame decoded before it.
    """
    data = event.data
    time = format_time(last_frame_time)
    event_type = event.event_type

    if event_type is EventType.SYNC_BEEP:
        return f'{{name:"Sync beep", time:{format_time(data.get("time"))}}}'

    if event_type is EventType.AUTOTUNE_CYCLE_START:
        cycle = int(data.get('cycle', 0))
        # Top bit of the cycle number flags a rising step
        return (
            f'{{name:"Autotune cycle start", time:{time}, data:{{'
            f'phase:{int(data.get("phase", 0))},cycle:{cycle & 0x7F},'
            f'p:{int(data.get("p", 0))},i:{int(data.get("i", 0))},d:{int(data.get("d", 0))},'
            f'rising:{cycle >> 7}}}}}'
        )

    if event_type is EventType.AUTOTUNE_CYCLE_RESULT:
        flags = int(data.get('flags', 0))
        return (
            f'{{name:"Autotune cycle result", time:{time}, data:{{'
            f'overshot:{_bool_text(flags & AUTOTUNE_FLAG_OVERSHOT)},'
            f'timedout:{_bool_text(flags & AUTOTUNE_FLAG_TIMEDOUT)},'
            f'p:{int(data.get("p", 0))},i:{int(data.get("i", 0))},d:{int(data.get("d", 0))}}}}}'
        )

    if event_type is EventType.AUTOTUNE_TARGETS:
        return (
            f'{{name:"Autotune cycle targets", time:{time}, data:{{'
            f'currentAngle:{data.get("currentAngle", 0) / 10.0:.1f},'
            f'targetAngle:{int(data.get("targetAngle", 0))},'
            f'targetAngleAtPeak:{int(data.get("targetAngleAtPeak", 0))},'
            f'firstPeakAngle:{data.get("firstPeakAngle", 0) / 10.0:.1f},'
            f'secondPeakAngle:{data.get("secondPeakAngle", 0) / 10.0:.1f}}}}}'
        )

    if event_type is EventType.LOG_END:
        return f'{{name:"Log clean end", time:{time}}}'

    return f'{{name:"Unknown event", time:{time}, data:{{eventID:{event.event_id}}}}}'


class EventWriter:
    """Writes the event log; the file is only created when an event arrives."""

    def __init__(self, sink: Optional[OutputSink]):
        """
        Args:
            sink: Destination of the event log, or None to discard events
        """
        self.sink = sink
        self.events_written = 0

    def write_event(self, event: FlightLogEvent, last_frame_time: Optional[int]):
        if self.sink is None:
            return

        self.sink.write_line(format_event(event, last_frame_time))
        self.events_written += 1
