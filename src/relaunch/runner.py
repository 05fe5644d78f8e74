"""
Wire the terminal, scanner, event sources, coordinator and supervisor together.

Startup order matters: the terminal is opened first, then the file watcher
is created, then the watch root is scanned. Any failure in those steps
aborts before a child is started and leaves the terminal mode restored.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from .config.settings import RunnerSettings
from .console import Console
from .directory_scanner import scan_source_directories
from .extensions import ExtensionAllowList
from .file_change_listener import FileChangeListener
from .keyboard_listener import KeyboardListener
from .process_supervisor import ProcessSupervisor
from .restart_coordinator import RestartCoordinator
from .terminal import TerminalSession

logger = logging.getLogger(__name__)

Scanner = Callable[[str, ExtensionAllowList], List[str]]


class Runner:
    """One supervised command, restarted on file writes and key presses."""

    def __init__(
        self,
        settings: RunnerSettings,
        *,
        console: Optional[Console] = None,
        terminal_factory: Callable[[str], TerminalSession] = TerminalSession,
        listener_factory: Callable[..., FileChangeListener] = FileChangeListener,
        scanner: Scanner = scan_source_directories,
    ) -> None:
        self.settings = settings
        self.console = console or Console()
        self.scanner = scanner
        self.watch_set: tuple[str, ...] = ()

        self.terminal = terminal_factory(settings.tty_path)
        try:
            self.supervisor = ProcessSupervisor(settings.command, self.console)
            self.coordinator = RestartCoordinator(self.supervisor, capacity=settings.queue_capacity)
            self.listener = listener_factory(settings.allow_list, self.coordinator.request_restart, self.console)
            self.keyboard = KeyboardListener(self.terminal, self.coordinator.request_restart)
        except BaseException:
            self.terminal.restore()
            raise

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """
        Scan, subscribe and supervise until *shutdown_event* is set.

        Raises:
            DirectoryScanError: If the watch root cannot be scanned
            FileListenerError: If the watch set cannot be subscribed
        """
        try:
            self.watch_set = tuple(self.scanner(self.settings.watch_root, self.settings.allow_list))
            self.listener.subscribe(self.watch_set)
            self.console.usage(self.watch_set)
            await self._supervise(shutdown_event)
        finally:
            self.close()
            await self.supervisor.aclose(self.settings.reap_timeout_seconds)

    async def _supervise(self, shutdown_event: asyncio.Event) -> None:
        tasks = [
            asyncio.create_task(self.coordinator.run(shutdown_event), name="restart-coordinator"),
            asyncio.create_task(self.listener.run(shutdown_event), name="file-change-listener"),
            asyncio.create_task(self.keyboard.run(shutdown_event), name="keyboard-listener"),
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            # one loop crashed; stop the others before propagating
            shutdown_event.set()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def close(self) -> None:
        """Restore the terminal, stop watching and kill the child. Idempotent."""
        self.terminal.restore()
        self.listener.close()
        self.supervisor.kill()


__all__ = ["Runner"]
