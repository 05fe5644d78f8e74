"""
Process Supervisor

Owns the single live child process. Every start places the child in a new
process group so a kill reaches everything it spawned. Kills never wait for
the child to exit; exit statuses are collected by background reaper tasks.

Usage:
    supervisor = ProcessSupervisor(("python", "app.py"), Console())
    await supervisor.restart()   # kill whatever runs, then start again
    supervisor.kill()            # shutdown
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Set

from .config.errors import ConfigurationError
from .console import Console
from .process_helpers import KillOutcome, group_members, interrupt_process_group, spawn_in_new_group

logger = logging.getLogger(__name__)


class SupervisorState(Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True)
class ChildProcessHandle:
    """The live child. ``pgid`` equals ``pid`` because the child leads its own group."""

    pid: int
    pgid: int
    command: tuple[str, ...]
    process: asyncio.subprocess.Process


class ProcessSupervisor:
    """Start, kill and restart one command at a time."""

    def __init__(self, command: Sequence[str], console: Console) -> None:
        if not command:
            raise ConfigurationError.missing_value("command", "nothing to run")
        self.command: tuple[str, ...] = tuple(command)
        self.console = console
        self._handle: Optional[ChildProcessHandle] = None
        self._reapers: Set[asyncio.Task] = set()

    @property
    def handle(self) -> Optional[ChildProcessHandle]:
        return self._handle

    @property
    def state(self) -> SupervisorState:
        return SupervisorState.RUNNING if self._handle is not None else SupervisorState.IDLE

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)

    async def start(self) -> Optional[ChildProcessHandle]:
        """
        Launch the command in a new process group.

        Returns:
            The new handle, or None when the launch failed. A failed launch
            is reported and leaves the supervisor idle; nothing is retried.
        """
        if self._handle is not None:
            raise RuntimeError(f"Process {self._handle.pid} is still supervised; kill it before starting another")

        try:
            process = await spawn_in_new_group(self.command)
        except OSError as exc:
            self.console.error("Cannot run command: %s", exc)
            return None

        handle = ChildProcessHandle(pid=process.pid, pgid=process.pid, command=self.command, process=process)
        self._handle = handle
        self.console.process_started(handle.pid, self.command_line)
        self._spawn_reaper(handle)
        return handle

    def kill(self) -> KillOutcome:
        """
        Interrupt the child's whole process group, escalating to SIGKILL.

        The handle is cleared once the attempt completes, whatever its result.
        """
        handle = self._handle
        if handle is None:
            return KillOutcome.NOT_RUNNING

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Interrupting process group %d (members: %s)", handle.pgid, group_members(handle.pgid))

        try:
            return interrupt_process_group(
                handle.pgid,
                report_error=self.console.error,
                report_escalation=self.console.escalation,
            )
        finally:
            self._handle = None

    async def restart(self) -> Optional[ChildProcessHandle]:
        """Kill the current child (if any) and start a fresh one."""
        self.kill()
        return await self.start()

    def _spawn_reaper(self, handle: ChildProcessHandle) -> None:
        task = asyncio.create_task(self._reap(handle), name=f"reap-{handle.pid}")
        self._reapers.add(task)
        task.add_done_callback(self._reapers.discard)

    async def _reap(self, handle: ChildProcessHandle) -> None:
        returncode = await handle.process.wait()
        logger.debug("Process %d exited with status %s", handle.pid, returncode)

    async def aclose(self, timeout: float) -> None:
        """Wait up to *timeout* seconds for outstanding reapers, then cancel them."""
        pending = list(self._reapers)
        if not pending:
            return
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.debug("Gave up waiting for %d child process(es) to exit", len(still_running))
            await asyncio.gather(*still_running, return_exceptions=True)


__all__ = ["ChildProcessHandle", "ProcessSupervisor", "SupervisorState"]
