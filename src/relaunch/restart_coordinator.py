"""Serialize restart requests from every event source into one consumer loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Restartable(Protocol):
    """What the coordinator needs from the process supervisor."""

    async def restart(self): ...

    def kill(self): ...


class RestartCoordinator:
    """
    Bounded multi-producer, single-consumer restart queue.

    Producers call :meth:`request_restart` (or the thread-safe variant from
    foreign threads) and never block. The consumer loop runs one restart per
    wake-up after draining whatever else is already buffered, so a burst of
    N requests results in between 1 and N restarts.
    """

    def __init__(self, supervisor: Restartable, *, capacity: int = 100) -> None:
        self.supervisor = supervisor
        self.capacity = capacity
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=capacity)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.requested = 0
        self.dropped = 0
        self.executed = 0

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def request_restart(self, reason: str = "requested") -> bool:
        """Queue a restart without blocking. Returns False if the request was dropped."""
        self.requested += 1
        try:
            self._queue.put_nowait(reason)
        except asyncio.QueueFull:  # policy_guard: allow-silent-handler
            # a full queue already guarantees a restart is coming
            self.dropped += 1
            logger.debug("Restart queue full; dropping request (%s)", reason)
            return False
        return True

    def request_restart_threadsafe(self, reason: str = "requested") -> None:
        """Queue a restart from a thread that does not own the event loop."""
        if self._loop is None:
            raise RuntimeError("RestartCoordinator is not bound to an event loop; call run() or bind_loop() first")
        self._loop.call_soon_threadsafe(self.request_restart, reason)

    def _drain(self) -> int:
        drained = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:  # policy_guard: allow-silent-handler
                return drained
            drained += 1

    async def _execute(self, reason: str) -> None:
        coalesced = self._drain()
        logger.debug("Restarting (%s; %d more request(s) coalesced)", reason, coalesced)
        self.executed += 1
        await self.supervisor.restart()

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """
        Consume restart requests until *shutdown_event* is set.

        One restart is issued on entry to start the first invocation. On
        shutdown the current child is killed so it is not left orphaned. An
        in-flight restart always completes before shutdown is checked again.
        """
        self.bind_loop(asyncio.get_running_loop())
        self.request_restart("startup")

        shutdown_waiter = asyncio.ensure_future(shutdown_event.wait())
        try:
            while not shutdown_event.is_set():
                getter = asyncio.ensure_future(self._queue.get())
                await asyncio.wait({getter, shutdown_waiter}, return_when=asyncio.FIRST_COMPLETED)
                if not getter.done():
                    getter.cancel()
                    break
                await self._execute(getter.result())
        finally:
            shutdown_waiter.cancel()
            logger.debug("Restart loop stopping; killing current process")
            self.supervisor.kill()


__all__ = ["RestartCoordinator", "Restartable"]
