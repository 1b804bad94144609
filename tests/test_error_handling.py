"""
Unit tests for error handling utilities.

Tests the exception hierarchy and per-log failure scoping.
"""

import io
import unittest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import patch

from blackbox_export.utils.error_handling import (
    LogErrorHandler, ProcessingError, ConfigurationError, UnitConversionError,
    OutputSinkError, LogStructureError, LogSelectionError
)
from blackbox_export.utils.io_utils import OutputSink


class TestExceptionHierarchy(unittest.TestCase):
    """Test that every pipeline error derives from ProcessingError."""

    def test_hierarchy(self):
        for error_class in (ConfigurationError, UnitConversionError, OutputSinkError,
                            LogStructureError, LogSelectionError):
            self.assertTrue(issubclass(error_class, ProcessingError))

        self.assertTrue(issubclass(UnitConversionError, ConfigurationError))


class TestLogErrorHandler(unittest.TestCase):
    """Test per-log failure scoping."""

    def setUp(self):
        """Set up test fixtures."""
        self.handler = LogErrorHandler()

    def test_successful_operation(self):
        with self.handler.handle_log_errors("log 1"):
            result = 1 + 1

        self.assertEqual(result, 2)
        self.assertEqual(self.handler.error_log, [])
        self.assertEqual(self.handler.get_error_summary()['total_errors'], 0)

    def test_log_failure_is_contained(self):
        with self.handler.handle_log_errors("log 1"):
            raise LogStructureError("No fields found in log")

        self.assertEqual(len(self.handler.error_log), 1)
        self.assertEqual(self.handler.error_log[0]['error_type'], 'LogStructureError')
        self.assertEqual(self.handler.failed_operations, ["log 1"])

    def test_critical_failure_raises(self):
        with self.assertRaises(ProcessingError):
            with self.handler.handle_log_errors("log 1", critical=True):
                raise OutputSinkError("disk full")

    def test_configuration_error_propagates(self):
        with self.assertRaises(ConfigurationError):
            with self.handler.handle_log_errors("log 1"):
                raise UnitConversionError("already cooked")

        self.assertEqual(self.handler.error_log, [])

    def test_error_summary(self):
        for i in range(3):
            with self.handler.handle_log_errors(f"log {i + 1}"):
                raise OutputSinkError("cannot create")

        summary = self.handler.get_error_summary()

        self.assertEqual(summary['total_errors'], 3)
        self.assertEqual(summary['error_types'], {'OutputSinkError': 3})
        self.assertEqual(len(summary['operations']), 3)

    @patch('blackbox_export.utils.error_handling.logger')
    def test_failure_is_logged(self, mock_logger):
        with self.handler.handle_log_errors("log 2"):
            raise LogStructureError("broken header")

        mock_logger.error.assert_called_once()
        self.assertIn("log 2", mock_logger.error.call_args[0][0])
        mock_logger.warning.assert_called_once()


class TestOutputSink(unittest.TestCase):
    """Test lazily opened output sinks."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def test_file_created_on_first_write(self):
        path = Path(self.temp_dir) / "out.csv"
        sink = OutputSink(str(path))

        self.assertFalse(path.exists())
        self.assertFalse(sink.opened)

        sink.write_line("a, b")
        sink.close()

        self.assertTrue(path.exists())
        self.assertEqual(path.read_text(), "a, b\n")
        self.assertEqual(sink.lines_written, 1)

    def test_close_is_idempotent(self):
        sink = OutputSink(str(Path(self.temp_dir) / "out.csv"))
        sink.write_line("x")

        sink.close()
        sink.close()

        self.assertFalse(sink.is_open)

    def test_write_after_close_raises(self):
        sink = OutputSink(str(Path(self.temp_dir) / "out.csv"))
        sink.close()

        with self.assertRaises(OutputSinkError):
            sink.write_line("late")

    def test_unwritable_destination(self):
        blocker = Path(self.temp_dir) / "blocker"
        blocker.write_text("not a directory")
        sink = OutputSink(str(blocker / "out.csv"))

        with self.assertRaises(OutputSinkError):
            sink.write_line("x")

    def test_borrowed_stream_is_not_closed(self):
        stream = io.StringIO()
        sink = OutputSink(stream=stream)
        sink.write_line("row")
        sink.close()

        self.assertFalse(stream.closed)
        self.assertEqual(stream.getvalue(), "row\n")

    def test_needs_destination(self):
        with self.assertRaises(ValueError):
            OutputSink()


if __name__ == '__main__':
    unittest.main()
