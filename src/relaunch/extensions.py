"""Recognized source-code extensions shared by the scanner and the change filter."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

# extensions of the most common languages
DEFAULT_SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".py",
    ".js",
    ".java",
    ".ts",
    ".go",
    ".cpp",
    ".rb",
    ".php",
    ".cs",
    ".c",
)


@dataclass(frozen=True)
class ExtensionAllowList:
    """Immutable set of file extensions that mark a file as source code."""

    extensions: frozenset[str]

    @classmethod
    def from_extensions(cls, extensions: Iterable[str]) -> "ExtensionAllowList":
        """Build an allow-list, adding the leading dot where it was omitted."""
        normalized = set()
        for ext in extensions:
            ext = ext.strip()
            if not ext:
                continue
            normalized.add(ext if ext.startswith(".") else f".{ext}")
        return cls(frozenset(normalized))

    @classmethod
    def default(cls) -> "ExtensionAllowList":
        return cls(frozenset(DEFAULT_SOURCE_EXTENSIONS))

    def matches(self, path: str) -> bool:
        """Return True when the final suffix of *path* is allowed (case-sensitive)."""
        _, ext = os.path.splitext(path)
        return ext in self.extensions

    def __contains__(self, ext: object) -> bool:
        return ext in self.extensions

    def __len__(self) -> int:
        return len(self.extensions)


__all__ = ["DEFAULT_SOURCE_EXTENSIONS", "ExtensionAllowList"]
