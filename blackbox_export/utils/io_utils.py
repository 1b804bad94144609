"""
File I/O utilities.

This module provides common file handling operations and the lazily opened
output sinks used while exporting one log.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, TextIO
import logging

from .error_handling import OutputSinkError

logger = logging.getLogger(__name__)


class FileHandler:
    """Handles file I/O operations for the exporter."""

    def load_json(self, file_path: str) -> Dict[str, Any]:
        """
        Load dictionary from JSON file.

        Args:
            file_path: Path to JSON file

        Returns:
            Loaded dictionary
        """
        with open(file_path, 'r') as f:
            return json.load(f)


class OutputSink:
    """
    Text destination opened on first write and closed exactly once.

    A sink either owns a file path, or wraps a stream it doesn't own (such as
    stdout), which is never closed.
    """

    def __init__(self, path: Optional[str] = None, stream: Optional[TextIO] = None):
        if path is None and stream is None:
            raise ValueError("OutputSink needs a path or a stream")

        self.path = path
        self._stream = stream
        self._owns_stream = stream is None
        self._opened = False
        self._closed = False
        self.lines_written = 0

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    @property
    def opened(self) -> bool:
        """Whether anything was ever written (the file exists on disk)."""
        return self._opened

    def open(self) -> TextIO:
        """
        Open the destination if it isn't open yet.

        Raises:
            OutputSinkError: If the file can't be created
        """
        if self._closed:
            raise OutputSinkError(f"Output {self.path} already closed")

        if self._stream is None:
            try:
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
                self._stream = open(self.path, 'w', newline='\n')
            except OSError as e:
                raise OutputSinkError(f"Failed to create output file {self.path}: {e}") from e
            logger.debug(f"Opened output {self.path}")
        self._opened = True

        return self._stream

    def write_line(self, line: str):
        self.open().write(line + "\n")
        self.lines_written += 1

    def close(self):
        if self._closed:
            return
        self._closed = True

        if self._stream is not None:
            if self._owns_stream:
                self._stream.close()
            else:
                self._stream.flush()
