"""
Processing components for flight log export.

This module contains processors for:
- Field classification and unit assignment
- Attitude estimation from inertial data
- Merging of the main and GPS streams
- Integrity accounting
"""

from .field_classifier import FieldClassifier
from .attitude_estimator import AttitudeEstimator
from .context import LogContext, OutputPaths
from .stream_merger import StreamMerger
from .integrity_accountant import IntegrityAccountant, IntegrityReport

__all__ = [
    "FieldClassifier",
    "AttitudeEstimator",
    "LogContext",
    "OutputPaths",
    "StreamMerger",
    "IntegrityAccountant",
    "IntegrityReport"
]
