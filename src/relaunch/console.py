"""
Operator-facing console output.

Every line goes through the ``relaunch.console`` logger so the prefix and
timestamp come from :mod:`relaunch.logging_config`; colors are attached per
record and applied by the formatter. Separator lines are written straight to
stdout, between the child's own output.
"""

from __future__ import annotations

import logging
import sys
from typing import Iterable, Optional, TextIO

COLOR_RESET = "\033[0m"
COLOR_RED = "\033[31m"
COLOR_GREEN = "\033[32m"
COLOR_YELLOW = "\033[33m"
COLOR_PURPLE = "\033[35m"
COLOR_CYAN = "\033[36m"
COLOR_WHITE = "\033[37m"
SEPARATOR = "-" * 66

CONSOLE_LOGGER_NAME = "relaunch.console"
USAGE_MESSAGE = "To restart the running program, press F5 or SPACE or Ctrl-R, or just make file changes."


class Console:
    """Colored status lines for the operator."""

    def __init__(self, logger: Optional[logging.Logger] = None, stream: Optional[TextIO] = None) -> None:
        self._logger = logger or logging.getLogger(CONSOLE_LOGGER_NAME)
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # resolved lazily so pytest's capsys replacement is honored
        return self._stream if self._stream is not None else sys.stdout

    def _emit(self, level: int, color: str, message: str, *args, usage: bool = False) -> None:
        self._logger.log(level, message, *args, extra={"color": color, "usage": usage})

    def _separator(self, *, reset: bool) -> None:
        suffix = COLOR_RESET if reset else ""
        self.stream.write(f"{COLOR_GREEN}{SEPARATOR}{suffix}\n")
        self.stream.flush()

    def info(self, message: str, *args) -> None:
        self._emit(logging.INFO, COLOR_WHITE, message, *args)

    def error(self, message: str, *args) -> None:
        self._emit(logging.ERROR, COLOR_RED, message, *args)

    def escalation(self, message: str, *args) -> None:
        self._emit(logging.WARNING, COLOR_PURPLE, message, *args)

    def file_modified(self, path: str) -> None:
        self._emit(logging.INFO, COLOR_GREEN, "Modified file: %s", path)

    def process_started(self, pid: int, command_line: str) -> None:
        self._separator(reset=False)
        self._emit(logging.INFO, COLOR_WHITE, "Process %d started for command: %s%s", pid, COLOR_CYAN, command_line)
        self._separator(reset=True)

    def usage(self, directories: Iterable[str]) -> None:
        """Print the trigger help and the numbered list of monitored directories."""
        self._separator(reset=False)
        self._emit(logging.INFO, COLOR_WHITE, USAGE_MESSAGE, usage=True)
        self._emit(logging.INFO, COLOR_WHITE, "The following directories are being monitored", usage=True)
        for index, directory in enumerate(directories, start=1):
            self._emit(logging.INFO, COLOR_WHITE, "%3d. %s", index, directory, usage=True)


__all__ = [
    "COLOR_CYAN",
    "COLOR_GREEN",
    "COLOR_PURPLE",
    "COLOR_RED",
    "COLOR_RESET",
    "COLOR_WHITE",
    "COLOR_YELLOW",
    "CONSOLE_LOGGER_NAME",
    "Console",
    "SEPARATOR",
    "USAGE_MESSAGE",
]
