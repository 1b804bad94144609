"""
Blackbox Export - Converts decoded blackbox flight logs into CSV, GPX and event files.

This package takes the frames of a decoded flight controller blackbox log,
writes the main and GPS telemetry as CSV tables (optionally merged into one),
the GPS track as GPX and out-of-band events as structured text, and reports
the integrity of every log: missing and corrupted loop iterations, data rate
and field ranges.
"""

__version__ = "1.0.0"
__author__ = "Blackbox Export Team"

from .config import ExportConfig
from .pipeline import FlightLogExporter

__all__ = ["ExportConfig", "FlightLogExporter"]
