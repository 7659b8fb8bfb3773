"""
Sync Session
============

Wires the sync engine together for one development session. ``start()``
returns the session handle and ``stop()`` tears it down; there is no
module-level engine state.
"""

import asyncio
import time
from pathlib import Path

from devsync.environment import SyncSettings, get_settings
from devsync.sync.debouncer import ChangeDebouncer
from devsync.sync.executor import SyncExecutor
from devsync.sync.fingerprints import FingerprintStore
from devsync.sync.locks import LockRegistry
from devsync.sync.models import SyncRoots
from devsync.sync.stability import StabilityProber
from devsync.sync.watcher import WatchCoordinator
from devsync.utils.rich_console import get_console_logger

logger = get_console_logger()


class SyncSessionError(Exception):
    """Raised when a sync session cannot be started."""


class SyncSession:
    """Owns every component of a running bidirectional sync."""

    def __init__(self, source_root: str | Path, target_root: str | Path, settings: SyncSettings | None = None):
        self.settings = settings or get_settings()
        self.roots = SyncRoots(Path(source_root).resolve(), Path(target_root).resolve())

        clock = time.monotonic
        self.fingerprints = FingerprintStore(clock=clock)
        self.locks = LockRegistry(
            self.fingerprints,
            lock_timeout=self.settings.lock_timeout,
            recent_window=self.settings.recent_window,
            clock=clock,
        )
        self.prober = StabilityProber(
            interval=self.settings.probe_interval,
            retry_delay=self.settings.probe_retry_delay,
            max_attempts=self.settings.probe_attempts,
            empty_file_retries=self.settings.empty_file_retries,
        )
        self.executor = SyncExecutor(
            self.roots,
            self.fingerprints,
            self.locks,
            self.prober,
            release_delay=self.settings.release_delay,
        )
        self.debouncer = ChangeDebouncer(
            self.fingerprints,
            self.locks,
            self.executor.execute,
            source_delay=self.settings.source_debounce,
            target_delay=self.settings.target_debounce,
            touch_window=self.settings.touch_window,
        )
        self.watcher = WatchCoordinator(
            self.roots,
            self.debouncer,
            ignore_patterns=self.settings.ignore_patterns,
            write_settle=self.settings.write_settle,
        )
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return self.watcher.is_running and not self._stopped

    def _validate_roots(self) -> None:
        for label, root in (("Source", self.roots.source), ("Target", self.roots.target)):
            if not root.is_dir():
                raise SyncSessionError(f"{label} directory does not exist: {root}")
        if self.roots.source == self.roots.target:
            raise SyncSessionError("Source and target must be different directories")

    async def _start(self) -> None:
        self._validate_roots()
        seeded = 0
        # Hashed in a worker thread; nothing else touches the store before the watcher starts
        for root in self.roots:
            seeded += await asyncio.to_thread(self.fingerprints.seed_tree, root, self.settings.ignore_patterns)
        logger.debug(f"Recorded {seeded} existing files")
        self.watcher.start()

    async def stop(self) -> None:
        """Stop the session. Safe to call more than once."""
        if self._stopped:
            return
        self._stopped = True
        await self.watcher.stop()

    def get_status(self) -> dict:
        """Get the current status of the session.

        Returns:
            dict: Roots, running flag, queue sizes and executor counters
        """
        status = {
            "running": self.is_running,
            "source": str(self.roots.source),
            "target": str(self.roots.target),
            "pending": self.debouncer.pending_count,
            "in_flight": self.debouncer.inflight_count,
            "locked": self.locks.blocked_count,
            "tracked": len(self.fingerprints),
        }
        status.update(self.executor.get_status())
        return status

    async def __aenter__(self) -> "SyncSession":
        await self._start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()


async def start(source_root: str | Path, target_root: str | Path, settings: SyncSettings | None = None) -> SyncSession:
    """
    Start synchronizing two directory trees.

    Must be awaited on the event loop that will run the session.

    Args:
        source_root: The developer's working copy
        target_root: The tree mounted into the running environment
        settings: Timings and filters, defaults to the environment's

    Returns:
        SyncSession: Handle to pass to stop()

    Raises:
        SyncSessionError: If either root is missing
    """
    session = SyncSession(source_root, target_root, settings)
    try:
        await session._start()
    except Exception:
        await session.stop()
        raise
    return session


async def stop(session: SyncSession | None) -> None:
    """Stop a session returned by start(). Accepts None after a failed start."""
    if session is None:
        return
    await session.stop()
