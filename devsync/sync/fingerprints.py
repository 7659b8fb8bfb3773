"""
Content Fingerprints
====================

Remembers the hash of the content each path had when it was last
synchronized, so that events which do not change content can be dropped.

The store is not thread-safe. The session only touches it from the event
loop thread.
"""

import asyncio
import hashlib
import os
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import NamedTuple

from devsync.utils.file import iter_files
from devsync.utils.rich_console import get_console_logger

logger = get_console_logger()

CHUNK_SIZE = 1024 * 1024


class FingerprintEntry(NamedTuple):
    content_hash: str
    synced_at: float | None


def _key(file_path: str | Path) -> str:
    return os.fspath(file_path)


def compute_hash(file_path: str | Path) -> str | None:
    """
    Hash the full contents of a file.

    Args:
        file_path: File to hash

    Returns:
        The MD5 hex digest, or None if the file cannot be read right now
    """
    digest = hashlib.md5()
    try:
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError:
        return None
    return digest.hexdigest()


class FingerprintStore:
    """Maps absolute paths to the hash of their last synchronized content."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, FingerprintEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, file_path: object) -> bool:
        return isinstance(file_path, (str, os.PathLike)) and _key(file_path) in self._entries

    def compute_hash(self, file_path: str | Path) -> str | None:
        return compute_hash(file_path)

    def get(self, file_path: str | Path) -> str | None:
        """Stored hash for a path, or None when the path is unknown."""
        entry = self._entries.get(_key(file_path))
        return entry.content_hash if entry else None

    def synced_at(self, file_path: str | Path) -> float | None:
        """Clock reading of the last recorded sync of a path, if any."""
        entry = self._entries.get(_key(file_path))
        return entry.synced_at if entry else None

    def has_changed(self, file_path: str | Path) -> bool:
        """
        Check whether a file's content differs from its last known fingerprint.

        A file that cannot be read is never reported as changed.

        Args:
            file_path: File to check

        Returns:
            bool: True if the current hash exists and differs from the stored one
        """
        return self.differs(file_path, self.compute_hash(file_path))

    def differs(self, file_path: str | Path, content_hash: str | None) -> bool:
        """True if a freshly computed hash is known and differs from the stored one."""
        if content_hash is None:
            return False
        return content_hash != self.get(file_path)

    async def check_changed(self, file_path: str | Path) -> bool:
        """
        Async has_changed(). The file is hashed in a worker thread so large
        files do not hold up the event loop.
        """
        current = await asyncio.to_thread(self.compute_hash, file_path)
        return self.differs(file_path, current)

    def record_synced(self, file_path: str | Path) -> bool:
        """
        Store the current hash of a file, stamped with the current time.

        Returns:
            bool: False if the file could not be read and nothing was stored
        """
        current = self.compute_hash(file_path)
        if current is None:
            return False
        self._entries[_key(file_path)] = FingerprintEntry(current, self._clock())
        return True

    def record_pair_synced(self, first: str | Path, second: str | Path) -> bool:
        """
        Record both ends of a copy, but only if they hold identical content.

        A mismatch means one side was written again after the copy. Nothing is
        committed in that case so the next event picks the change up.

        Args:
            first: One end of the copy
            second: The other end

        Returns:
            bool: True if both entries were committed
        """
        return self._commit_pair(first, second, self.compute_hash(first), self.compute_hash(second))

    async def confirm_pair(self, first: str | Path, second: str | Path) -> bool:
        """
        Async record_pair_synced(). Both ends are hashed in a worker thread,
        the entries are committed on the calling loop.
        """
        first_hash, second_hash = await asyncio.to_thread(
            lambda: (self.compute_hash(first), self.compute_hash(second))
        )
        return self._commit_pair(first, second, first_hash, second_hash)

    def _commit_pair(self, first, second, first_hash: str | None, second_hash: str | None) -> bool:
        if first_hash is None or first_hash != second_hash:
            logger.debug(f"Fingerprints differ after copy, not recording: {first} / {second}")
            return False

        now = self._clock()
        self._entries[_key(first)] = FingerprintEntry(first_hash, now)
        self._entries[_key(second)] = FingerprintEntry(second_hash, now)
        return True

    def seed(self, file_path: str | Path) -> bool:
        """Record a file's current hash without marking it as recently synced."""
        current = self.compute_hash(file_path)
        if current is None:
            return False
        self._entries[_key(file_path)] = FingerprintEntry(current, None)
        return True

    def seed_tree(self, root: str | Path, ignore_patterns: Iterable[str] = ()) -> int:
        """
        Seed fingerprints for every existing file under a root.

        Args:
            root: Directory to walk
            ignore_patterns: fnmatch patterns of entries to skip

        Returns:
            int: Number of files recorded
        """
        count = 0
        for file_path in iter_files(root, ignore_patterns):
            if self.seed(file_path):
                count += 1
        logger.debug(f"Seeded {count} fingerprints under {root}")
        return count

    def forget(self, file_path: str | Path) -> None:
        self._entries.pop(_key(file_path), None)

    def clear(self) -> None:
        self._entries.clear()
