"""
Stability Prober
================

Decides whether a writer has finished with a file by watching its size and
modification time stop moving. Writers are trusted local processes, so two
identical snapshots taken a short interval apart are good enough.
"""

import asyncio
import os
from pathlib import Path
from typing import NamedTuple

from devsync.utils.rich_console import get_console_logger

logger = get_console_logger()


class FileSnapshot(NamedTuple):
    size: int
    mtime_ns: int


def take_snapshot(file_path: str | Path) -> FileSnapshot | None:
    """Size and mtime of a regular file, or None if it is missing or unreadable."""
    try:
        stat = os.stat(file_path)
    except OSError:
        return None
    return FileSnapshot(stat.st_size, stat.st_mtime_ns)


class StabilityProber:
    """Waits for files to stop changing before they are read."""

    def __init__(
        self,
        interval: float = 0.5,
        retry_delay: float = 1.0,
        max_attempts: int = 3,
        empty_file_retries: int = 10,
    ):
        """
        Args:
            interval: Seconds between the two snapshots of one attempt
            retry_delay: Seconds to wait before another attempt
            max_attempts: Default attempt budget for await_stable()
            empty_file_retries: Zero-size waits allowed per call; these do not
                consume attempts
        """
        self.interval = interval
        self.retry_delay = retry_delay
        self.max_attempts = max_attempts
        self.empty_file_retries = empty_file_retries

    async def await_stable(self, file_path: str | Path, max_attempts: int | None = None) -> bool:
        """
        Wait until a file's size and mtime hold still across one interval.

        A zero-size file is treated as still being created: the prober waits
        one interval and looks again without spending an attempt.

        Args:
            file_path: File to probe
            max_attempts: Attempt budget, defaults to the prober's

        Returns:
            bool: True once two consecutive snapshots match, False if the file
            vanished or never settled
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        empty_waits = 0
        attempt = 0

        while attempt < attempts:
            first = take_snapshot(file_path)
            if first is None:
                logger.debug(f"Stability probe: {file_path} is gone")
                return False

            if first.size == 0:
                if empty_waits >= self.empty_file_retries:
                    logger.debug(f"Stability probe: {file_path} stayed empty")
                    return False
                empty_waits += 1
                await asyncio.sleep(self.interval)
                continue

            await asyncio.sleep(self.interval)

            second = take_snapshot(file_path)
            if second is None:
                logger.debug(f"Stability probe: {file_path} vanished mid-probe")
                return False
            if first == second:
                return True

            attempt += 1
            logger.debug(f"Stability probe: {file_path} still changing (attempt {attempt}/{attempts})")
            if attempt < attempts:
                await asyncio.sleep(self.retry_delay)

        return False
