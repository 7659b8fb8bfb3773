"""
Lock Registry
=============

Keeps the engine from reacting to its own writes. A path being synced is
"active"; once released it stays "recently synced" for a trailing window so
the watch event produced by the engine's own write is swallowed.

Every timer is an ``asyncio.TimerHandle`` stored under the path it belongs
to. Re-arming a timer cancels the previous one, and ``shutdown()`` cancels
them all. All methods must be called from the event loop thread.
"""

import asyncio
import os
import time
from collections.abc import Callable
from pathlib import Path

from devsync.sync.fingerprints import FingerprintStore
from devsync.utils.rich_console import get_console_logger

logger = get_console_logger()


def _key(file_path: str | Path) -> str:
    return os.fspath(file_path)


class LockRegistry:
    """Tracks which paths are syncing now or were synced a moment ago."""

    def __init__(
        self,
        fingerprints: FingerprintStore,
        lock_timeout: float = 10.0,
        recent_window: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            fingerprints: Store whose sync timestamps back was_recently_touched()
            lock_timeout: Seconds after which an active flag clears on its own
            recent_window: Seconds a path stays recently-synced after release
            clock: Time source, must match the one the fingerprint store uses
        """
        self.fingerprints = fingerprints
        self.lock_timeout = lock_timeout
        self.recent_window = recent_window
        self._clock = clock
        self._active: set[str] = set()
        self._recent: set[str] = set()
        self._auto_release: dict[str, asyncio.TimerHandle] = {}
        self._expire_recent: dict[str, asyncio.TimerHandle] = {}
        self._delayed_release: dict[str, asyncio.TimerHandle] = {}

    def acquire(self, file_path: str | Path) -> None:
        """Mark a path actively syncing and arm its safety auto-release."""
        key = _key(file_path)
        loop = asyncio.get_running_loop()
        self._active.add(key)
        self._recent.add(key)
        self._cancel(self._expire_recent, key)
        self._cancel(self._auto_release, key)
        self._auto_release[key] = loop.call_later(self.lock_timeout, self._on_auto_release, key)

    def _on_auto_release(self, key: str) -> None:
        self._auto_release.pop(key, None)
        if key in self._active:
            logger.warning(f"Sync lock for {key} timed out after {self.lock_timeout}s, releasing")
        self.release_active(key)

    def release_active(self, file_path: str | Path) -> None:
        """
        Clear the active flag and start the recently-synced countdown.

        Safe to call for paths that are not locked.
        """
        key = _key(file_path)
        self._active.discard(key)
        self._cancel(self._auto_release, key)
        self._cancel(self._delayed_release, key)
        if key not in self._recent:
            return
        self._cancel(self._expire_recent, key)
        loop = asyncio.get_running_loop()
        self._expire_recent[key] = loop.call_later(self.recent_window, self._on_recent_expired, key)

    def release_later(self, file_path: str | Path, delay: float) -> None:
        """Schedule release_active() after a cool-down, replacing any earlier one."""
        key = _key(file_path)
        self._cancel(self._delayed_release, key)
        loop = asyncio.get_running_loop()
        self._delayed_release[key] = loop.call_later(delay, self._on_delayed_release, key)

    def _on_delayed_release(self, key: str) -> None:
        self._delayed_release.pop(key, None)
        self.release_active(key)

    def _on_recent_expired(self, key: str) -> None:
        self._expire_recent.pop(key, None)
        if key not in self._active:
            self._recent.discard(key)

    def is_active(self, file_path: str | Path) -> bool:
        return _key(file_path) in self._active

    def is_blocked(self, file_path: str | Path) -> bool:
        """True while a path is syncing or inside its recently-synced window."""
        key = _key(file_path)
        return key in self._active or key in self._recent

    def was_recently_touched(self, file_path: str | Path, window: float = 3.0) -> bool:
        """
        Check whether the engine recorded a sync of this path within a window.

        Args:
            file_path: Path to check
            window: Trailing window in seconds

        Returns:
            bool: True if the last recorded sync is younger than window
        """
        synced_at = self.fingerprints.synced_at(file_path)
        if synced_at is None:
            return False
        return self._clock() - synced_at < window

    def shutdown(self) -> None:
        """Cancel every outstanding timer and forget all lock state."""
        for timers in (self._auto_release, self._expire_recent, self._delayed_release):
            for handle in timers.values():
                handle.cancel()
            timers.clear()
        self._active.clear()
        self._recent.clear()

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def blocked_count(self) -> int:
        return len(self._active | self._recent)

    @staticmethod
    def _cancel(timers: dict[str, asyncio.TimerHandle], key: str) -> None:
        handle = timers.pop(key, None)
        if handle is not None:
            handle.cancel()
