"""
Centralized logging configuration for the supervisor.

Configures the root logger once per process with:
- Console output on stderr, so it interleaves with the child's own stderr
- A ``[Press F5 to refresh "<program>"]`` prefix on every line
- Per-record colors supplied by :class:`relaunch.console.Console`
- Timestamps on event lines, none on usage lines
"""

import logging
import re
import sys
import threading
from typing import Optional, TextIO

from .console import COLOR_GREEN, COLOR_RESET

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_UNKNOWN_LOGGER_NAME = "<unknown>"
_TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M:%S"
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


class PrefixedColorFormatter(logging.Formatter):
    """Format records as ``<prefix><timestamp> <colored message>``."""

    def __init__(self, program_name: str, *, use_color: bool = True) -> None:
        super().__init__(datefmt=_TIMESTAMP_FORMAT)
        self.use_color = use_color
        label = f'[Press F5 to refresh "{program_name}"] '
        self.prefix = f"{COLOR_GREEN}{label}{COLOR_RESET}" if use_color else label

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        color = getattr(record, "color", None)
        if not self.use_color:
            # color codes can also arrive through the message arguments
            message = _ANSI_ESCAPE.sub("", message)
        elif color:
            message = f"{color}{message}{COLOR_RESET}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if getattr(record, "usage", False):
            return f"{self.prefix}{message}"
        return f"{self.prefix}{self.formatTime(record, self.datefmt)} {message}"


def _close_handlers(logger: logging.Logger, logger_name: Optional[str] = None) -> None:
    """Close all handlers for a logger, logging any errors."""
    for handler in list(logger.handlers):
        try:
            handler.close()
        except OSError as e:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            safe_name = logger_name if logger_name else _UNKNOWN_LOGGER_NAME
            _MODULE_LOGGER.debug("Handler close failed for logger '%s': %s", safe_name, e)


def _reset_all_handlers(root_logger: logging.Logger) -> None:
    """Close existing root handlers so repeated setup does not duplicate output."""
    _close_handlers(root_logger)
    root_logger.handlers = []


def _build_console_handler(program_name: str, stream: TextIO) -> logging.Handler:
    use_color = bool(getattr(stream, "isatty", lambda: False)())
    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(PrefixedColorFormatter(program_name, use_color=use_color))
    return console_handler


def _suppress_noisy_third_parties() -> None:
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("watchdog").setLevel(logging.WARNING)
    logging.getLogger("fsevents").setLevel(logging.WARNING)


def setup_logging(program_name: str, level: int = logging.INFO, stream: Optional[TextIO] = None) -> logging.Handler:
    """Configure logging for the supervisor.

    Args:
        program_name: Base name of the supervised executable, shown in the prefix.
        level: Root logging level.
        stream: Destination stream; defaults to ``sys.stderr``.

    Returns:
        The installed console handler.
    """

    # Use thread-safe lock to ensure single configuration
    with _config_lock:
        root_logger = logging.getLogger()
        _reset_all_handlers(root_logger)

        console_handler = _build_console_handler(program_name, stream or sys.stderr)
        root_logger.addHandler(console_handler)
        root_logger.setLevel(level)
        _suppress_noisy_third_parties()
        return console_handler
