from __future__ import annotations

"""Run the supervisor under asyncio with consistent Ctrl+C / SIGTERM handling."""

import asyncio
import logging
import signal
import sys
from typing import Callable, Optional

from .config.errors import ConfigurationError
from .config.settings import RunnerSettings
from .errors import RelaunchError
from .logging_config import setup_logging
from .runner import Runner

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)

RunnerFactory = Callable[[RunnerSettings], Runner]


def install_shutdown_handlers(loop: asyncio.AbstractEventLoop, shutdown_event: asyncio.Event) -> None:
    """Set *shutdown_event* when the process receives SIGINT or SIGTERM."""
    for signum in SHUTDOWN_SIGNALS:
        try:
            loop.add_signal_handler(signum, shutdown_event.set)
        except (NotImplementedError, RuntimeError, ValueError):  # policy_guard: allow-silent-handler
            # not in the main thread or unsupported platform; Ctrl+C still raises KeyboardInterrupt
            logger.debug("Cannot install handler for %s", signal.Signals(signum).name)


async def serve(settings: RunnerSettings, runner_factory: RunnerFactory = Runner) -> None:
    """Build a runner and supervise until a shutdown signal arrives."""
    shutdown_event = asyncio.Event()
    runner = runner_factory(settings)
    install_shutdown_handlers(asyncio.get_running_loop(), shutdown_event)
    await runner.run(shutdown_event)


def run_supervisor(
    settings: RunnerSettings,
    *,
    configure_logging: bool = True,
    runner_factory: Optional[RunnerFactory] = None,
) -> int:
    """Run the supervisor to completion and return the process exit code.

    Args:
        settings: Immutable run configuration.
        configure_logging: Whether to configure logging via ``setup_logging``.
        runner_factory: Alternative runner constructor (tests).

    Returns:
        0 after a graceful shutdown, 1 when startup failed.
    """
    if configure_logging:
        setup_logging(settings.program_name, settings.log_level)

    try:
        asyncio.run(serve(settings, runner_factory or Runner))
    except KeyboardInterrupt:  # Expected exception in operation  # policy_guard: allow-silent-handler
        logger.info("%s supervisor interrupted by user", settings.program_name)
    except (RelaunchError, ConfigurationError) as exc:
        sys.stderr.write(f"cannot run {settings.program_name}: {exc}\n")
        return 1
    return 0


__all__ = ["install_shutdown_handlers", "run_supervisor", "serve"]
