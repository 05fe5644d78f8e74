"""Scoped ownership of the controlling terminal and its saved mode."""

from __future__ import annotations

import logging
import os
import termios
import threading
import tty
from typing import Any, List, Optional

from .errors import TerminalUnavailableError

logger = logging.getLogger(__name__)


class TerminalSession:
    """
    Controlling terminal opened once, with its original mode saved.

    :meth:`restore` puts the saved mode back and closes the device. It is safe
    to call from every exit path; only the first call has any effect.
    """

    def __init__(self, path: str = "/dev/tty") -> None:
        self.path = path
        try:
            self._fd: Optional[int] = os.open(path, os.O_RDWR | os.O_NOCTTY)
        except OSError as exc:
            raise TerminalUnavailableError(path) from exc

        try:
            self._saved_mode: List[Any] = termios.tcgetattr(self._fd)
        except termios.error as exc:
            os.close(self._fd)
            self._fd = None
            raise TerminalUnavailableError(path, reason="not a terminal") from exc

        self._restore_lock = threading.Lock()
        self._restored = False
        self.in_cbreak = False

    @property
    def restored(self) -> bool:
        return self._restored

    def fileno(self) -> int:
        if self._fd is None:
            raise ValueError(f"terminal {self.path} is closed")
        return self._fd

    def enter_cbreak(self) -> None:
        """Deliver keystrokes one at a time, without line buffering or echo."""
        tty.setcbreak(self.fileno(), termios.TCSANOW)
        self.in_cbreak = True

    def restore(self) -> None:
        """Write the saved terminal mode back and close the device (once)."""
        with self._restore_lock:
            if self._restored:
                return
            self._restored = True
            fd, self._fd = self._fd, None

        try:
            termios.tcsetattr(fd, termios.TCSADRAIN, self._saved_mode)
        except termios.error as exc:
            logger.warning("Could not restore terminal mode on %s: %s", self.path, exc)
        finally:
            self.in_cbreak = False
            os.close(fd)

    def __enter__(self) -> "TerminalSession":
        return self

    def __exit__(self, *_: Any) -> None:
        self.restore()


__all__ = ["TerminalSession"]
