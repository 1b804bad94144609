"""
Flight log parsing engines.

This module contains:
- The engine contract (BaseLogParser, FrameHandler)
- The flight log data model (frames, events, statistics)
- A replay engine for frames decoded ahead of time
"""

from .base import BaseLogParser, FrameHandler
from .flight_log import (
    FlightLog, FlightLogEvent, FrameType, MainFrame, GPSFrame, GPSHomeFrame, EventFrame
)
from .replay_parser import ReplayLogParser

__all__ = [
    "BaseLogParser",
    "FrameHandler",
    "FlightLog",
    "FlightLogEvent",
    "FrameType",
    "MainFrame",
    "GPSFrame",
    "GPSHomeFrame",
    "EventFrame",
    "ReplayLogParser"
]
