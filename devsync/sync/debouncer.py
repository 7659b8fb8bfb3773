"""Change debouncing for rapid edits."""

import asyncio
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

from devsync.sync.fingerprints import FingerprintStore
from devsync.sync.locks import LockRegistry
from devsync.sync.models import SyncDirection
from devsync.utils.rich_console import get_console_logger

logger = get_console_logger()

SyncHandler = Callable[[str, SyncDirection], Awaitable[object]]
PendingKey = tuple[str, SyncDirection]


class ChangeDebouncer:
    """
    Coalesce bursts of events for the same path and direction into one sync.

    Each (path, direction) key holds at most one pending timer; a new event
    for the key cancels the old timer and starts a fresh one. Changes coming
    out of the target tree wait longer than changes from the source tree,
    since they usually come from multi-step installs or builds.
    """

    def __init__(
        self,
        fingerprints: FingerprintStore,
        locks: LockRegistry,
        handler: SyncHandler,
        source_delay: float = 2.0,
        target_delay: float = 4.0,
        touch_window: float = 3.0,
    ):
        """
        Args:
            fingerprints: Store used to drop events that did not change content
            locks: Registry used to drop events caused by the engine itself
            handler: Coroutine function run when a pending sync fires
            source_delay: Debounce for source-to-target changes, in seconds
            target_delay: Debounce for target-to-source changes, in seconds
            touch_window: Events this soon after a recorded sync are dropped
        """
        self.fingerprints = fingerprints
        self.locks = locks
        self.handler = handler
        self.source_delay = source_delay
        self.target_delay = target_delay
        self.touch_window = touch_window

        self._pending: dict[PendingKey, asyncio.TimerHandle] = {}
        self._inflight: set[asyncio.Task] = set()
        self._closed = False

    def delay_for(self, direction: SyncDirection) -> float:
        if direction is SyncDirection.TARGET_TO_SOURCE:
            return self.target_delay
        return self.source_delay

    async def on_event(self, file_path: str | Path, direction: SyncDirection) -> bool:
        """
        Gate an incoming change and schedule a sync if it passes.

        The content check hashes the file in a worker thread; the lock and
        closed checks are repeated once it returns.

        Args:
            file_path: Absolute path of the changed file
            direction: Direction the change should travel

        Returns:
            bool: True if a sync was scheduled
        """
        key = os.fspath(file_path)
        if self._closed:
            return False
        if self.locks.is_blocked(key):
            logger.debug(f"Ignoring event for locked path: {key}")
            return False
        if self.locks.was_recently_touched(key, self.touch_window):
            logger.debug(f"Ignoring event for recently synced path: {key}")
            return False
        if not await self.fingerprints.check_changed(key):
            logger.debug(f"Content unchanged, ignoring: {key}")
            return False
        if self._closed or self.locks.is_blocked(key):
            return False

        self.schedule(key, direction)
        return True

    def schedule(self, file_path: str | Path, direction: SyncDirection) -> None:
        """Start (or restart) the debounce timer for a path and direction."""
        key = (os.fspath(file_path), direction)
        previous = self._pending.pop(key, None)
        if previous is not None:
            previous.cancel()
            logger.debug(f"Superseded pending sync for {key[0]} ({direction.value})")

        loop = asyncio.get_running_loop()
        self._pending[key] = loop.call_later(self.delay_for(direction), self._fire, key)

    def _fire(self, key: PendingKey) -> None:
        self._pending.pop(key, None)
        if self._closed:
            return
        file_path, direction = key
        task = asyncio.get_running_loop().create_task(self.handler(file_path, direction))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def is_pending(self, file_path: str | Path, direction: SyncDirection) -> bool:
        return (os.fspath(file_path), direction) in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def wait_idle(self) -> None:
        """Wait for syncs that have already been handed off to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel pending timers and in-flight syncs, and refuse new events."""
        self._closed = True
        for handle in self._pending.values():
            handle.cancel()
        self._pending.clear()

        tasks = list(self._inflight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
