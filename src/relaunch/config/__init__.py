"""Shared configuration helpers and dataclasses."""

from .errors import ConfigurationError
from .runtime import env_float, env_int, env_list, env_str
from .settings import RunnerSettings, load_settings

__all__ = [
    "ConfigurationError",
    "RunnerSettings",
    "env_float",
    "env_int",
    "env_list",
    "env_str",
    "load_settings",
]
