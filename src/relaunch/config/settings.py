from __future__ import annotations

"""Immutable runner settings assembled from the command line and environment."""

import logging
import os
from dataclasses import dataclass
from typing import Sequence

from ..extensions import DEFAULT_SOURCE_EXTENSIONS, ExtensionAllowList
from .errors import ConfigurationError
from .runtime import env_float, env_int, env_list, env_str

DEFAULT_TTY_PATH = "/dev/tty"
DEFAULT_QUEUE_CAPACITY = 100
DEFAULT_REAP_TIMEOUT_SECONDS = 2.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class RunnerSettings:
    """Everything the supervisor needs, fixed for the lifetime of a run."""

    command: tuple[str, ...]
    allow_list: ExtensionAllowList
    watch_root: str
    tty_path: str = DEFAULT_TTY_PATH
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY
    reap_timeout_seconds: float = DEFAULT_REAP_TIMEOUT_SECONDS
    log_level: int = logging.INFO

    def __post_init__(self) -> None:
        if not self.command:
            raise ConfigurationError.missing_value("command", "nothing to run")
        if self.queue_capacity < 1:
            raise ConfigurationError.invalid_value("queue_capacity", self.queue_capacity, "must be at least 1")
        if self.reap_timeout_seconds < 0:
            raise ConfigurationError.invalid_value("reap_timeout_seconds", self.reap_timeout_seconds, "must be non-negative")
        if not self.allow_list.extensions:
            raise ConfigurationError.missing_value("allow_list", "no source extensions configured")

    @property
    def program_name(self) -> str:
        return os.path.basename(self.command[0])


def _parse_log_level(raw: str) -> int:
    level = logging.getLevelName(raw.upper())
    if not isinstance(level, int):
        raise ConfigurationError.invalid_format("RELAUNCH_LOG_LEVEL", raw, "a logging level name such as INFO or DEBUG")
    return level


def load_settings(command: Sequence[str]) -> RunnerSettings:
    """Build :class:`RunnerSettings` for *command* using ``RELAUNCH_*`` overrides.

    Raises:
        ConfigurationError: If the command is empty or an override is malformed.
    """
    extensions = env_list("RELAUNCH_EXTENSIONS", or_value=DEFAULT_SOURCE_EXTENSIONS)
    watch_root = env_str("RELAUNCH_WATCH_ROOT") or os.getcwd()

    return RunnerSettings(
        command=tuple(command),
        allow_list=ExtensionAllowList.from_extensions(extensions or ()),
        watch_root=os.path.abspath(watch_root),
        tty_path=env_str("RELAUNCH_TTY_PATH", DEFAULT_TTY_PATH),
        queue_capacity=env_int("RELAUNCH_QUEUE_CAPACITY", DEFAULT_QUEUE_CAPACITY),
        reap_timeout_seconds=env_float("RELAUNCH_REAP_TIMEOUT_SECONDS", DEFAULT_REAP_TIMEOUT_SECONDS),
        log_level=_parse_log_level(env_str("RELAUNCH_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
    )
