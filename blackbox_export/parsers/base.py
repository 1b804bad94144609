"""
Base classes for the flight log parsing engine contract.

The engine decodes a binary log into typed frames and drives the export
pipeline by calling a FrameHandler, strictly in parse order.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from .flight_log import FlightLog, Frame, FlightLogEvent


class FrameHandler(ABC):
    """Receiver of the engine's callbacks for one log."""

    @abstractmethod
    def on_metadata_ready(self, log: FlightLog):
        """Called once per log, before any frame, when field definitions are known."""
        pass

    @abstractmethod
    def on_frame_ready(self, log: FlightLog, frame: Frame):
        """Called once per decoded frame attempt, valid and invalid alike."""
        pass

    @abstractmethod
    def on_event(self, log: FlightLog, event: FlightLogEvent):
        """Called for out-of-band events (sync beeps, autotune phases, log end)."""
        pass


class BaseLogParser(ABC):
    """Abstract base class for flight log parsing engines."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the parser with optional configuration.

        Args:
            config: Optional configuration dictionary for parser settings
        """
        self.config = config or {}

    @property
    @abstractmethod
    def log_count(self) -> int:
        """Number of sub-logs found in the input."""
        pass

    def log_sizes(self):
        """
        Start offset and size in bytes of each sub-log, relative to the first.

        Returns:
            List of (start_offset, size) tuples, empty if the engine does not
            track byte positions
        """
        return []

    @abstractmethod
    def parse(self, log_index: int, handler: FrameHandler, raw: bool = False) -> bool:
        """
        Decode one sub-log, invoking the handler for its metadata, frames and events.

        Args:
            log_index: Zero-based index of the sub-log to decode
            handler: Receiver of the engine callbacks
            raw: Don't apply predictions to fields (pass raw field deltas through)

        Returns:
            True if the log was parsed to completion, False on terminal failure

        Raises:
            Any exception raised by the handler propagates unchanged
        """
        pass

    @property
    @abstractmethod
    def flight_log(self) -> Optional[FlightLog]:
        """Descriptor of the most recently parsed sub-log."""
        pass
