"""
Output writers for exported logs.
"""

from .field_formatter import FieldFormatter
from .csv_writer import MainCSVWriter, GPSCSVWriter
from .event_writer import EventWriter
from .gpx_writer import GPXWriter

__all__ = ["FieldFormatter", "MainCSVWriter", "GPSCSVWriter", "EventWriter", "GPXWriter"]
