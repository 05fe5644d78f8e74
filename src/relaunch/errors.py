"""Common error types used across the supervisor."""

from __future__ import annotations


class RelaunchError(RuntimeError):
    """Base class for failures that abort supervisor startup."""


class TerminalUnavailableError(RelaunchError):
    """Raised when the controlling terminal cannot be opened or configured."""

    def __init__(self, path: str, *, reason: str = "cannot open terminal") -> None:
        super().__init__(f"{reason}: {path}")
        self.path = path
        self.reason = reason


class FileListenerError(RelaunchError):
    """Raised when the filesystem observer cannot be created or subscribed."""


class DirectoryScanError(RelaunchError):
    """Raised when a directory in the watch tree cannot be read."""

    def __init__(self, path: str) -> None:
        super().__init__(f"cannot read directory: {path}")
        self.path = path


__all__ = [
    "DirectoryScanError",
    "FileListenerError",
    "RelaunchError",
    "TerminalUnavailableError",
]
