"""
Main pipeline orchestrator for flight log export.

Selects the logs of each input file, decodes them one at a time through the
stream merge engine and reports the integrity of every decoded log.
"""

from typing import List, Dict, Any, Optional, TextIO
from pathlib import Path
import logging
import sys

from .config import ExportConfig
from .parsers import BaseLogParser, ReplayLogParser
from .processors import (
    IntegrityAccountant, LogContext, OutputPaths, StreamMerger
)
from .utils import LogErrorHandler, LogSelectionError, TrackVisualizer


class FlightLogExporter:
    """Main pipeline for exporting flight logs to CSV, GPX and event files."""

    def __init__(self, config: Optional[ExportConfig] = None):
        """
        Initialize the exporter.

        Args:
            config: Export configuration. If None, uses default config.
        """
        self.config = config or ExportConfig()
        self.logger = self._setup_logging()

        self.accountant = IntegrityAccountant(raw=self.config.raw,
                                              print_limits=self.config.print_limits)
        self.error_handler = LogErrorHandler()
        self.visualizer = TrackVisualizer() if self.config.create_visualizations else None

        self.processing_stats = {}

    def process_files(self, log_files: List[str]) -> Dict[str, Any]:
        """
        Export every selected log of several files.

        Files that can't be read are reported and skipped.

        Args:
            log_files: Paths of the log files

        Returns:
            Dictionary mapping each file path to its results

        Raises:
            LogSelectionError: If the requested log doesn't exist in a file
        """
        if self.config.to_stdout and len(log_files) > 1:
            raise LogSelectionError(
                "You can only decode one log at a time if you're printing to stdout"
            )

        results = {}

        for file_path in log_files:
            try:
                results[file_path] = self.process_file(file_path)
            except (FileNotFoundError, ValueError, OSError) as e:
                self.logger.error(f"Failed to read log file '{file_path}': {e}")
                results[file_path] = {'file': file_path, 'logs': [], 'error': str(e)}

        self.processing_stats = {
            'files': len(log_files),
            'logs_decoded': sum(
                1 for result in results.values()
                for log_result in result['logs'] if log_result['success']
            ),
            'errors': self.error_handler.get_error_summary(),
        }

        return results

    def process_file(self, file_path: str,
                     parser: Optional[BaseLogParser] = None) -> Dict[str, Any]:
        """
        Export the selected logs of one file.

        Args:
            file_path: Path of the log file
            parser: Parsing engine to use; a replay parser reading `file_path`
                is created if None

        Returns:
            Dictionary with one result per decoded log
        """
        if parser is None:
            parser = ReplayLogParser.from_file(file_path)

        if parser.log_count == 0:
            raise ValueError(
                f"Couldn't find the header of a flight log in the file '{file_path}', "
                f"is this the right kind of file?"
            )

        prefix = self.output_prefix(file_path)
        log_results = []

        for log_index in self.select_log_indexes(parser):
            if self.config.to_stdout:
                paths = OutputPaths.for_stdout()
                main_stream = sys.stdout
            else:
                paths = OutputPaths.for_log(prefix, log_index)
                main_stream = None
                self.logger.info(f"Decoding log '{file_path}' to '{paths.csv}'...")

            log_results.append(self.decode_log(parser, log_index, paths, main_stream))

        return {'file': file_path, 'logs': log_results}

    def output_prefix(self, file_path: str) -> str:
        """Output prefix of a file: the configured prefix, or the path without its extension."""
        if self.config.output_prefix:
            return self.config.output_prefix

        path = Path(file_path)
        return str(path.with_suffix('')) if path.suffix else str(path)

    def select_log_indexes(self, parser: BaseLogParser) -> List[int]:
        """
        Choose the logs of a file to decode.

        A chosen log number selects that log. Exporting to stdout needs a
        single log, so a file with several logs must have one chosen. Otherwise
        every log is decoded.

        Raises:
            LogSelectionError: If the chosen log doesn't exist, or no log was
                chosen for stdout export from a file holding several
        """
        log_count = parser.log_count

        if self.config.log_number is not None:
            if self.config.log_number > log_count:
                raise LogSelectionError(
                    f"Couldn't load log #{self.config.log_number} from this file, "
                    f"because there are only {log_count} logs in total."
                )
            return [self.config.log_number - 1]

        if self.config.to_stdout:
            if log_count == 1:
                return [0]

            lines = ["This file contains multiple flight logs, please choose one with the "
                     "--index argument:", "", "Index  Start offset  Size (bytes)"]
            for i, (start, size) in enumerate(parser.log_sizes()):
                lines.append(f"{i + 1:5d} {start:13d} {size:13d}")
            raise LogSelectionError("\n".join(lines))

        return list(range(log_count))

    def decode_log(self, parser: BaseLogParser, log_index: int, paths: OutputPaths,
                   main_stream: Optional[TextIO] = None) -> Dict[str, Any]:
        """
        Decode one log and write its outputs.

        Failures of this log (an output that can't be created, a log without
        field definitions) are logged and abandon this log only. Outputs are
        closed on every path; partial output is left in place.

        Args:
            parser: Parsing engine holding the log
            log_index: Zero-based index of the log
            paths: Output destinations
            main_stream: Stream receiving the main table instead of a file

        Returns:
            Dictionary with the log's success flag, outputs and integrity report
        """
        result = {
            'log_index': log_index,
            'success': False,
            'output_files': [],
            'rows_written': 0,
            'report': None,
            'track_plot': None,
        }

        with self.error_handler.handle_log_errors(f"log {log_index + 1}"):
            with LogContext(self.config, paths, main_stream) as context:
                merger = StreamMerger(context)
                success = parser.parse(log_index, merger, raw=self.config.raw)
                merger.finish()

            result['success'] = success
            result['rows_written'] = context.main_writer.rows_written if context.main_writer else 0
            result['main_frames'] = merger.main_frames
            result['gps_frames'] = merger.gps_frames
            result['events'] = merger.events

            if not success:
                self.logger.warning(f"Log {log_index + 1} ended with a parse failure")
            else:
                report = self.accountant.compute(parser.flight_log, log_index)
                result['report'] = report
                self.logger.info(f"Decoded log {log_index + 1}: {report.good_frames} frames, "
                                 f"{report.missing_iterations} iterations missing")

                if self.visualizer is not None and paths.track_plot:
                    result['track_plot'] = self.visualizer.plot_track(
                        context.track_points, paths.track_plot
                    )

        result['output_files'] = paths.existing_files()
        return result

    def _setup_logging(self) -> logging.Logger:
        """Set up logging configuration."""
        logger = logging.getLogger('blackbox_export')

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        if self.config.debug:
            logger.setLevel(logging.DEBUG)
        else:
            logger.setLevel(logging.INFO if self.config.verbose else logging.WARNING)

        return logger
