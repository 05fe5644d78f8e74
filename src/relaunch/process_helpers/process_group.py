"""Start commands in their own process group and terminate whole groups."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from enum import Enum
from typing import Any, Callable, List, Sequence

import psutil

logger = logging.getLogger(__name__)


class KillOutcome(Enum):
    """Result of a kill attempt against a process group."""

    NOT_RUNNING = "not_running"
    INTERRUPTED = "interrupted"
    ALREADY_EXITED = "already_exited"
    FORCE_KILLED = "force_killed"
    KILL_FAILED = "kill_failed"


async def spawn_in_new_group(command: Sequence[str]) -> asyncio.subprocess.Process:
    """
    Launch *command* as the leader of a new process group.

    The child's process-group id equals its pid, so everything it spawns
    can be signalled together. stdout and stderr are inherited; stdin is
    /dev/null, since a background group reading the terminal gets stopped.

    Raises:
        OSError: If the executable cannot be launched
    """
    # set process group, so we can kill all of the spawned processes.
    return await asyncio.create_subprocess_exec(*command, stdin=asyncio.subprocess.DEVNULL, process_group=0)


def group_members(pgid: int) -> List[int]:
    """Return pids of live, non-zombie processes whose process group is *pgid*."""
    members = []
    for proc in psutil.process_iter(["pid", "status"]):
        try:
            if proc.info["status"] == psutil.STATUS_ZOMBIE:
                continue
            if os.getpgid(proc.info["pid"]) == pgid:
                members.append(proc.info["pid"])
        except (ProcessLookupError, PermissionError, psutil.Error):  # policy_guard: allow-silent-handler
            # process vanished or is not ours to inspect
            continue
    return members


def interrupt_process_group(
    pgid: int,
    *,
    report_error: Callable[..., Any],
    report_escalation: Callable[..., Any],
) -> KillOutcome:
    """
    Send SIGINT to every process in group *pgid*, escalating to SIGKILL.

    "No such process" means the group already exited and is not an error.
    Any other failure to interrupt is reported and followed by SIGKILL; a
    SIGKILL failure is reported too. Never waits for the group to exit.

    Args:
        pgid: Process-group id (the leader's pid)
        report_error: Called with a printf-style message for each failure
        report_escalation: Called with a printf-style message before SIGKILL

    Returns:
        What happened to the group
    """
    try:
        os.killpg(pgid, signal.SIGINT)
    except ProcessLookupError:  # policy_guard: allow-silent-handler
        logger.debug("Process group %d already exited", pgid)
        return KillOutcome.ALREADY_EXITED
    except OSError as exc:
        report_error("Process %d: cannot interrupt: %s", pgid, exc)
        report_escalation("Process %d: sending sigkill", pgid)
        return _force_kill_group(pgid, report_error=report_error)
    return KillOutcome.INTERRUPTED


def _force_kill_group(pgid: int, *, report_error: Callable[..., Any]) -> KillOutcome:
    try:
        os.killpg(pgid, signal.SIGKILL)
    except OSError as exc:
        report_error("Process %d: cannot be killed: %s", pgid, exc)
        return KillOutcome.KILL_FAILED
    return KillOutcome.FORCE_KILLED
