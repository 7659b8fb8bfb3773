"""
Watch Coordinator
=================

Observes the source and target trees with watchdog and feeds settled file
events into the change debouncer.

watchdog delivers events on its observer thread. The handler only hands the
path over to the event loop with ``call_soon_threadsafe``; every bit of
engine state is touched from the loop thread alone.
"""

import asyncio
import os
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from devsync.sync.debouncer import ChangeDebouncer
from devsync.sync.models import SyncDirection, SyncRoots
from devsync.sync.stability import FileSnapshot, take_snapshot
from devsync.utils.file import is_ignored
from devsync.utils.rich_console import get_console_logger

logger = get_console_logger()


class SyncEventHandler(FileSystemEventHandler):
    """Forwards file creations, modifications and move destinations."""

    def __init__(self, coordinator: "WatchCoordinator"):
        super().__init__()
        self.coordinator = coordinator

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.coordinator.notify(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self.coordinator.notify(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors that save through a temp file show up as a move onto the real name
        if not event.is_directory:
            self.coordinator.notify(event.dest_path)


class WatchCoordinator:
    """Owns the observers for both roots and the per-path settle timers."""

    def __init__(
        self,
        roots: SyncRoots,
        debouncer: ChangeDebouncer,
        ignore_patterns: list[str] | None = None,
        write_settle: float = 1.0,
    ):
        """
        Args:
            roots: Source and target roots to observe
            debouncer: Receives each settled event with its direction
            ignore_patterns: fnmatch patterns matched against path components
                below the roots
            write_settle: Seconds of inactivity required before an event for a
                path is delivered
        """
        self.roots = roots
        self.debouncer = debouncer
        self.ignore_patterns = list(ignore_patterns or [])
        self.write_settle = write_settle

        self._observer: Observer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._settling: dict[str, tuple[asyncio.TimerHandle, FileSnapshot]] = {}
        self._delivering: set[asyncio.Task] = set()
        self._running = False
        self._stopped = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Begin observing both roots recursively. Must run on the event loop."""
        if self._running:
            logger.warning("Watcher is already running")
            return
        if self._stopped:
            raise RuntimeError("A stopped watcher cannot be restarted")

        self._loop = asyncio.get_running_loop()
        handler = SyncEventHandler(self)
        self._observer = Observer()
        for root in self.roots:
            self._observer.schedule(handler, str(root), recursive=True)
            logger.debug(f"Watching {root}")
        self._observer.start()
        self._running = True
        logger.info(f"Watching {self.roots.source} ⇄ {self.roots.target}")

    def notify(self, file_path: str | bytes) -> None:
        """Hand a raw event over to the event loop. Called from watchdog's thread."""
        loop = self._loop
        if loop is None or self._stopped:
            return
        try:
            loop.call_soon_threadsafe(self._on_raw_event, os.fsdecode(file_path))
        except RuntimeError:
            # Loop already closed during teardown
            logger.debug(f"Dropping event after shutdown: {file_path!r}")

    def _on_raw_event(self, file_path: str) -> None:
        if self._stopped:
            return
        direction = self.roots.classify(file_path)
        if direction is None:
            return
        root = self.roots.source if direction is SyncDirection.SOURCE_TO_TARGET else self.roots.target
        if is_ignored(Path(file_path).relative_to(root), self.ignore_patterns):
            return

        if self.write_settle <= 0:
            self._deliver(file_path)
            return

        snapshot = take_snapshot(file_path)
        if snapshot is None:
            self._cancel_settle(file_path)
            return
        self._arm_settle(file_path, snapshot)

    def _arm_settle(self, file_path: str, snapshot: FileSnapshot) -> None:
        self._cancel_settle(file_path)
        handle = self._loop.call_later(self.write_settle, self._on_settled, file_path)
        self._settling[file_path] = (handle, snapshot)

    def _on_settled(self, file_path: str) -> None:
        entry = self._settling.pop(file_path, None)
        if entry is None or self._stopped:
            return
        _, previous = entry
        current = take_snapshot(file_path)
        if current is None:
            return
        if current != previous:
            self._arm_settle(file_path, current)
            return
        self._deliver(file_path)

    def _deliver(self, file_path: str) -> None:
        direction = self.roots.classify(file_path)
        if direction is None:
            return
        task = self._loop.create_task(self.debouncer.on_event(file_path, direction))
        self._delivering.add(task)
        task.add_done_callback(self._delivering.discard)

    def _cancel_settle(self, file_path: str) -> None:
        entry = self._settling.pop(file_path, None)
        if entry is not None:
            entry[0].cancel()

    @property
    def settling_count(self) -> int:
        return len(self._settling)

    async def stop(self) -> None:
        """
        Stop observing and tear down every timer the engine owns.

        Cancels settle timers, event checks still in progress, pending
        debounced syncs and in-flight syncs, then shuts the lock registry
        down. Calling it again is a no-op.
        """
        if self._stopped:
            return
        self._stopped = True

        observer = self._observer
        if observer is not None:
            try:
                observer.stop()
                if observer.is_alive():
                    await asyncio.to_thread(observer.join, 5.0)
            except RuntimeError as error:
                logger.error(f"Error stopping observer: {error}")
        self._running = False

        for handle, _ in self._settling.values():
            handle.cancel()
        self._settling.clear()

        delivering = list(self._delivering)
        for task in delivering:
            task.cancel()
        if delivering:
            await asyncio.gather(*delivering, return_exceptions=True)
        self._delivering.clear()

        await self.debouncer.cancel_all()
        self.debouncer.locks.shutdown()
        logger.info("File sync stopped")
