"""
Directory discovery for the file watcher.

Walks the watch root once at startup and returns every directory that
directly holds source files. The result is the watch set; it is never
recomputed during a run, so directories created later are not picked up.

Usage:
    from relaunch.directory_scanner import scan_source_directories

    dirs = scan_source_directories(os.getcwd(), ExtensionAllowList.default())
"""

from __future__ import annotations

import logging
import os
from typing import List

from .errors import DirectoryScanError
from .extensions import ExtensionAllowList

logger = logging.getLogger(__name__)


def is_hidden(path: str) -> bool:
    """Return True for paths whose base name starts with a dot."""
    return os.path.basename(os.path.normpath(path)).startswith(".")


def scan_source_directories(root: str, allow_list: ExtensionAllowList) -> List[str]:
    """
    Return directories under *root* (inclusive) that directly contain source files.

    Directories are visited depth-first in pre-order with entries sorted by
    name. Hidden directories are skipped together with their whole subtree,
    the root included. Symlinked directories are not followed.

    Args:
        root: Directory to start from
        allow_list: Extensions that mark a file as source code

    Returns:
        Absolute paths of qualifying directories, in visit order

    Raises:
        DirectoryScanError: If the root or any visited subdirectory cannot be read
    """
    found: List[str] = []
    _visit(os.path.abspath(root), allow_list, found)
    logger.debug("Scanned %s: %d source directories", root, len(found))
    return found


def _visit(directory: str, allow_list: ExtensionAllowList, found: List[str]) -> None:
    # skip hidden directories with . as prefix
    if is_hidden(directory):
        return

    entries = _read_entries(directory)
    if any(_is_source_file(entry, allow_list) for entry in entries):
        found.append(directory)

    for entry in entries:
        if _is_subdirectory(entry):
            _visit(entry.path, allow_list, found)


def _read_entries(directory: str) -> List[os.DirEntry]:
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        raise DirectoryScanError(directory) from exc


def _is_source_file(entry: os.DirEntry, allow_list: ExtensionAllowList) -> bool:
    try:
        is_file = entry.is_file()
    except OSError as exc:
        raise DirectoryScanError(entry.path) from exc
    return is_file and allow_list.matches(entry.name)


def _is_subdirectory(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError as exc:
        raise DirectoryScanError(entry.path) from exc


__all__ = ["is_hidden", "scan_source_directories"]
