"""
GPX track writer.

Writes GPS fixes as a GPX 1.1 track. The file is created with the first point
and the track is terminated when the writer is closed.
"""

from typing import Optional

from ..utils.io_utils import OutputSink
from ..utils.units import format_fixed_point

GPX_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<gpx creator="Blackbox flight data recorder" version="1.1" '
    'xmlns="http://www.topografix.com/GPX/1/1" '
    'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xsi:schemaLocation="http://www.topografix.com/GPX/1/1 http://www.topografix.com/GPX/1/1/gpx.xsd">\n'
    '<metadata><name>Blackbox flight log</name></metadata>\n'
    '<trk><name>Blackbox flight log</name><trkseg>'
)
GPX_FOOTER = '</trkseg></trk>\n</gpx>'

# Logs don't record a date, so fix times are placed on the epoch day
DEFAULT_DATE_PREFIX = "1970-01-01T"


def format_gpx_time(time_us: int) -> str:
    """Render a log time in microseconds as an ISO 8601 time on the epoch day."""
    seconds, micros = divmod(time_us, 1000000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{DEFAULT_DATE_PREFIX}{hours:02d}:{minutes:02d}:{seconds:02d}.{micros:06d}Z"


class GPXWriter:
    """Ordered, timestamped sequence of (latitude, longitude, altitude) points."""

    def __init__(self, sink: Optional[OutputSink]):
        """
        Args:
            sink: Destination of the track, or None to discard points
        """
        self.sink = sink
        self.points = []

    def add_point(self, time_us: Optional[int], lat: int, lon: int, altitude: int):
        """
        Append a fix to the track.

        Args:
            time_us: Fix time in microseconds, or None when unknown
            lat: Latitude in degrees * 10^7
            lon: Longitude in degrees * 10^7
            altitude: Altitude in meters
        """
        self.points.append((time_us, lat, lon, altitude))

        if self.sink is None:
            return

        if not self.sink.opened:
            self.sink.write_line(GPX_HEADER)

        point = (f'  <trkpt lat="{format_fixed_point(lat, 7)}" lon="{format_fixed_point(lon, 7)}">'
                 f'<ele>{altitude}</ele>')
        if time_us is not None:
            point += f'<time>{format_gpx_time(time_us)}</time>'
        point += '</trkpt>'

        self.sink.write_line(point)

    def close(self):
        """Terminate the track if any point was written, then close the sink."""
        if self.sink is None:
            return

        if self.sink.is_open:
            self.sink.write_line(GPX_FOOTER)
        self.sink.close()
