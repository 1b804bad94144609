"""
Utility functions and helpers for flight log export.

This module contains:
- Unit conversions
- Attitude filter math
- Error handling
- Visualization helpers
- File I/O utilities
"""

from .error_handling import (
    LogErrorHandler, ProcessingError, ConfigurationError, UnitConversionError,
    OutputSinkError, LogStructureError, LogSelectionError
)
from .io_utils import FileHandler, OutputSink
from .visualization import TrackVisualizer

__all__ = [
    "LogErrorHandler",
    "ProcessingError",
    "ConfigurationError",
    "UnitConversionError",
    "OutputSinkError",
    "LogStructureError",
    "LogSelectionError",
    "FileHandler",
    "OutputSink",
    "TrackVisualizer"
]
