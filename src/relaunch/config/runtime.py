from __future__ import annotations

"""Runtime helpers for working with environment-backed configuration."""


import os
from typing import Callable, Sequence, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")


def _normalize(value: str | None, *, strip: bool) -> str | None:
    if value is None:
        return None
    return value.strip() if strip else value


def _coerce(name: str, raw_value: str, *, cast: Callable[[str], T], kind: str) -> T:
    try:
        return cast(raw_value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Environment variable {name!r} must be {kind} (got {raw_value!r})") from exc


def env_str(
    name: str,
    or_value: str | None = None,
    *,
    required: bool = False,
    strip: bool = True,
    allow_blank: bool = False,
) -> str | None:
    """Fetch an environment variable as a string with validation."""

    value = _normalize(os.getenv(name), strip=strip)

    if value is None or (not allow_blank and value == ""):
        if required:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return value


def env_int(name: str, or_value: int | None = None, *, required: bool = False) -> int | None:
    """Fetch an environment variable and coerce it to ``int``."""

    raw = env_str(name, strip=True, allow_blank=False)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return _coerce(name, raw, cast=int, kind="an integer")


def env_float(name: str, or_value: float | None = None, *, required: bool = False) -> float | None:
    """Fetch an environment variable and coerce it to ``float``."""

    raw = env_str(name, strip=True, allow_blank=False)
    if raw is None:
        if required and or_value is None:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        return or_value
    return _coerce(name, raw, cast=float, kind="a float")


def env_list(
    name: str,
    *,
    or_value: Sequence[str] | None = None,
    separator: str = ",",
    required: bool = False,
) -> tuple[str, ...] | None:
    """Fetch a delimited list from the environment.

    Items are stripped, blanks dropped and duplicates removed while keeping
    the first occurrence.
    """

    raw = env_str(name, strip=True, allow_blank=False)
    if raw is None:
        if required and not or_value:
            raise ConfigurationError(f"Required environment variable {name!r} is not set")
        if or_value is None:
            return None
        return tuple(or_value)

    items: list[str] = []
    for part in raw.split(separator):
        item = part.strip()
        if item and item not in items:
            items.append(item)

    if not items and required:
        raise ConfigurationError(f"Environment variable {name!r} must contain at least one value")
    return tuple(items)
