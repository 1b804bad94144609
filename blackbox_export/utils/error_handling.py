"""
Error handling utilities for flight log export.

Defines the exception hierarchy used across the pipeline and a handler that
scopes log-level failures to a single log.
"""

from typing import Dict, Any, List
import logging
import traceback
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Base exception for processing errors."""
    pass


class ConfigurationError(ProcessingError):
    """Exception raised for invalid configuration (bad unit text, bad unit for a quantity)."""
    pass


class UnitConversionError(ConfigurationError):
    """Exception raised when a value is converted to a unit that makes no sense for it."""
    pass


class OutputSinkError(ProcessingError):
    """Exception raised when an output destination cannot be created."""
    pass


class LogStructureError(ProcessingError):
    """Exception raised when a log has no usable field definitions."""
    pass


class LogSelectionError(ProcessingError):
    """Exception raised when the requested sub-log does not exist in the file."""
    pass


class LogErrorHandler:
    """Scopes unrecoverable failures to the log being decoded."""

    def __init__(self):
        """Initialize error handler."""
        self.error_log = []

    @contextmanager
    def handle_log_errors(self, operation_name: str, critical: bool = False):
        """
        Context manager for handling failures while decoding one log.

        Output sink and log structure failures abandon the current log only;
        configuration errors always propagate since no log can be decoded
        correctly with a bad configuration.

        Args:
            operation_name: Name of the operation being performed
            critical: Whether any failure should propagate as ProcessingError
        """
        try:
            logger.debug(f"Starting operation: {operation_name}")
            yield
            logger.debug(f"Completed operation: {operation_name}")
        except ConfigurationError:
            raise
        except Exception as e:
            self.error_log.append({
                'operation': operation_name,
                'error_type': type(e).__name__,
                'error_message': str(e),
                'traceback': traceback.format_exc()
            })

            logger.error(f"Error in {operation_name}: {e}")
            logger.debug(f"Full traceback: {traceback.format_exc()}")

            if critical:
                raise ProcessingError(f"Critical error in {operation_name}: {e}") from e

            logger.warning(f"Abandoned {operation_name}, continuing with the next log")

    @property
    def failed_operations(self) -> List[str]:
        """Names of the operations that failed so far."""
        return [error['operation'] for error in self.error_log]

    def get_error_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all errors encountered.

        Returns:
            Dictionary with error statistics and details
        """
        if not self.error_log:
            return {'total_errors': 0, 'error_types': {}, 'operations': {}}

        error_types = {}
        operations = {}

        for error in self.error_log:
            error_type = error['error_type']
            operation = error['operation']

            error_types[error_type] = error_types.get(error_type, 0) + 1
            operations[operation] = operations.get(operation, 0) + 1

        return {
            'total_errors': len(self.error_log),
            'error_types': error_types,
            'operations': operations,
            'recent_errors': self.error_log[-5:]
        }
