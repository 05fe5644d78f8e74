"""
Filesystem listener.

Subscribes a ``watchdog`` observer to every directory of the watch set
(non-recursively) and turns content writes to source files into restart
requests. The observer runs on its own threads; events and errors are
handed to the event loop through a bridge queue and consumed by
:meth:`FileChangeListener.run`.

An observer error or a dead observer or emitter thread ends the watch loop. Keyboard
restarts keep working after that.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable, Iterable, Optional, Union

from watchdog.events import EVENT_TYPE_MODIFIED, FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .console import Console
from .errors import FileListenerError
from .extensions import ExtensionAllowList

logger = logging.getLogger(__name__)

OBSERVER_HEALTH_INTERVAL_SECONDS = 1.0
OBSERVER_JOIN_TIMEOUT_SECONDS = 2.0

_CLOSED = object()
BridgeItem = Union[FileSystemEvent, BaseException, object]


def is_source_write(event: FileSystemEvent, allow_list: ExtensionAllowList) -> bool:
    """True for content writes to a file whose extension is allowed."""
    if event.event_type != EVENT_TYPE_MODIFIED or event.is_directory:
        return False
    return allow_list.matches(os.fsdecode(event.src_path))


class _BridgeHandler(FileSystemEventHandler):
    """Forwards every raw observer event to the listener."""

    def __init__(self, forward: Callable[[BridgeItem], None]) -> None:
        super().__init__()
        self._forward = forward

    def on_any_event(self, event: FileSystemEvent) -> None:
        self._forward(event)


class _ReportingObserver(Observer):
    """Observer whose dispatch-thread failures are reported instead of printed."""

    def __init__(self, on_error: Callable[[BridgeItem], None]) -> None:
        super().__init__()
        self._on_error = on_error

    def run(self) -> None:
        try:
            super().run()
        except Exception as exc:  # policy_guard: allow-silent-handler
            # thread ends here; the watch loop reports the error and halts
            self._on_error(exc)


class FileChangeListener:
    """Watch the watch set and request a restart for every source write."""

    def __init__(
        self,
        allow_list: ExtensionAllowList,
        request_restart: Callable[[str], object],
        console: Console,
        *,
        health_interval: float = OBSERVER_HEALTH_INTERVAL_SECONDS,
    ) -> None:
        self.allow_list = allow_list
        self.request_restart = request_restart
        self.console = console
        self.health_interval = health_interval
        self.watch_set: tuple[str, ...] = ()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._events: asyncio.Queue[BridgeItem] = asyncio.Queue()
        self._closed = False
        try:
            self._observer = _ReportingObserver(self._forward)
        except (OSError, RuntimeError) as exc:
            raise FileListenerError(f"cannot create file watcher: {exc}") from exc

    def subscribe(self, directories: Iterable[str]) -> None:
        """
        Register every directory and start the observer.

        Must be called from the event loop that will run :meth:`run`.

        Raises:
            FileListenerError: If a directory cannot be watched
        """
        self._loop = asyncio.get_running_loop()
        self.watch_set = tuple(directories)
        handler = _BridgeHandler(self._forward)
        try:
            for directory in self.watch_set:
                self._observer.schedule(handler, directory, recursive=False)
            self._observer.start()
        except OSError as exc:
            # emitters scheduled before the failing one may already be running
            self._observer.stop()
            raise FileListenerError(f"cannot watch directories: {exc}") from exc

    def _forward(self, item: BridgeItem) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._events.put_nowait, item)
        except RuntimeError:  # policy_guard: allow-silent-handler
            # loop closed between the check and the call
            logger.debug("Dropping file event after loop shutdown: %r", item)

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Consume observer events until shutdown, an observer error or closure."""
        while not shutdown_event.is_set():
            item = await self._next_item(shutdown_event)
            if item is None:
                continue
            if item is _CLOSED:
                self.console.error("Unknown event, halting.")
                return
            if isinstance(item, BaseException):
                self.console.error("Error: %s", item)
                return
            self._handle_event(item)

    async def _next_item(self, shutdown_event: asyncio.Event) -> Optional[BridgeItem]:
        getter = asyncio.ensure_future(self._events.get())
        waiter = asyncio.ensure_future(shutdown_event.wait())
        try:
            await asyncio.wait({getter, waiter}, timeout=self.health_interval, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not getter.done():
                getter.cancel()

        if getter.done() and not getter.cancelled():
            return getter.result()
        if shutdown_event.is_set():
            return None
        if not self._observer.is_alive():
            return _CLOSED
        return self._dead_emitter_error()

    def _dead_emitter_error(self) -> Optional[FileListenerError]:
        for emitter in list(self._observer.emitters):
            # an emitter whose directory was removed stops itself; only crashed ones count
            if not emitter.is_alive() and emitter.should_keep_running():
                return FileListenerError(f"stopped watching {emitter.watch.path}")
        return None

    def _handle_event(self, event: FileSystemEvent) -> None:
        if not is_source_write(event, self.allow_list):
            return
        path = os.fsdecode(event.src_path)
        self.console.file_modified(path)
        self.request_restart(f"file change: {path}")

    def close(self) -> None:
        """Stop the observer. Safe to call more than once, or before subscribing."""
        if self._closed:
            return
        self._closed = True
        # stops and joins the emitters even when the dispatch thread never started
        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join(timeout=OBSERVER_JOIN_TIMEOUT_SECONDS)


__all__ = ["FileChangeListener", "is_source_write"]
