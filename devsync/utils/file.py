"""
File Utility Functions
==================

This module provides the small filesystem helpers shared by the sync engine
and the provisioning step.
"""

import fnmatch
import os
import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path

from devsync.utils.logging import timeit


def is_ignored(file_path: str | Path, patterns: Iterable[str]) -> bool:
    """
    Check whether a path matches any ignore pattern.

    Patterns are matched against the file name and against every path
    component, so ``.git`` ignores everything below a ``.git`` directory.

    Args:
        file_path: Path to check
        patterns: fnmatch-style patterns

    Returns:
        bool: True if the path should be ignored
    """
    parts = Path(file_path).parts
    for pattern in patterns:
        for part in parts:
            if fnmatch.fnmatch(part, pattern):
                return True
    return False


def iter_files(root: str | Path, patterns: Iterable[str] = ()) -> Iterator[Path]:
    """
    Yield every regular file below root, skipping ignored entries.

    Unreadable directories are skipped silently.

    Args:
        root: Directory to walk
        patterns: fnmatch-style ignore patterns

    Yields:
        Path: Absolute path of each file
    """
    patterns = list(patterns)
    root = Path(root)
    for dirpath, dirnames, filenames in os.walk(root, onerror=lambda error: None):
        dirnames[:] = [name for name in dirnames if not is_ignored(name, patterns)]
        for name in filenames:
            if is_ignored(name, patterns):
                continue
            path = Path(dirpath) / name
            if path.is_file():
                yield path


@timeit("copy_file")
def copy_file(read_from: str | Path, write_to: str | Path) -> None:
    """
    Copy a whole file over its destination.

    Args:
        read_from: File to copy
        write_to: Destination, overwritten if present

    Raises:
        OSError: If the source cannot be read or the destination written
    """
    shutil.copyfile(read_from, write_to)


def ensure_parent_dir(file_path: str | Path) -> Path:
    """
    Create the parent directory of a file if it is missing.

    Args:
        file_path: Path whose parent should exist

    Returns:
        Path: The parent directory
    """
    parent = Path(file_path).parent
    parent.mkdir(parents=True, exist_ok=True)
    return parent
