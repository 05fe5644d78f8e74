"""Restart on F5, Ctrl-R or SPACE typed at the controlling terminal."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable, Protocol

from .keyboard_helpers import KEY_CTRL_R, KEY_F5, KEY_SPACE, KeyDecoder

logger = logging.getLogger(__name__)

RESTART_KEYS = frozenset({KEY_F5, KEY_CTRL_R, KEY_SPACE})
_READ_SIZE = 64


class KeyboardTerminal(Protocol):
    def fileno(self) -> int: ...

    def enter_cbreak(self) -> None: ...

    def restore(self) -> None: ...


class KeyboardListener:
    """Reads keystrokes while the terminal is in cbreak mode."""

    def __init__(self, terminal: KeyboardTerminal, request_restart: Callable[[str], object]) -> None:
        self.terminal = terminal
        self.request_restart = request_restart
        self.decoder = KeyDecoder()
        self._reading = False

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Listen until *shutdown_event* is set, then restore the terminal and return."""
        loop = asyncio.get_running_loop()
        fd = self.terminal.fileno()
        self.terminal.enter_cbreak()
        try:
            loop.add_reader(fd, self._on_readable, fd)
            self._reading = True
            await shutdown_event.wait()
        finally:
            self._stop_reading(loop, fd)
            self.terminal.restore()

    def _stop_reading(self, loop: asyncio.AbstractEventLoop, fd: int) -> None:
        if self._reading:
            loop.remove_reader(fd)
            self._reading = False

    def _on_readable(self, fd: int) -> None:
        try:
            data = os.read(fd, _READ_SIZE)
        except BlockingIOError:  # policy_guard: allow-silent-handler
            return
        except OSError as exc:
            logger.error("Keyboard input failed, keys are ignored from now on: %s", exc)
            self._stop_reading(asyncio.get_running_loop(), fd)
            return

        if not data:
            logger.warning("Terminal closed, keys are ignored from now on")
            self._stop_reading(asyncio.get_running_loop(), fd)
            return

        self.handle_bytes(data)

    def handle_bytes(self, data: bytes) -> int:
        """Decode *data* and request one restart per trigger key. Returns the trigger count."""
        triggers = 0
        for key in self.decoder.feed(data):
            if key in RESTART_KEYS:
                triggers += 1
                self.request_restart(f"key {key}")
        return triggers


__all__ = ["KeyboardListener", "RESTART_KEYS"]
