"""
Sync Executor
=============

Performs one debounced sync: checks locks, waits for the file to settle,
confirms its content really changed, copies it to the other tree and records
the new fingerprints.

Nothing raised while syncing a single path is allowed to escape
``execute()``. A missed cycle is picked up again by the next event for the
same path.
"""

import asyncio
import os
from datetime import datetime
from pathlib import Path

from devsync.sync.fingerprints import FingerprintStore
from devsync.sync.locks import LockRegistry
from devsync.sync.models import SyncDirection, SyncPaths, SyncRoots
from devsync.sync.stability import StabilityProber
from devsync.utils.file import copy_file, ensure_parent_dir
from devsync.utils.rich_console import get_console_logger

logger = get_console_logger()


class SyncExecutor:
    """Copies a changed file to its counterpart in the other tree."""

    def __init__(
        self,
        roots: SyncRoots,
        fingerprints: FingerprintStore,
        locks: LockRegistry,
        prober: StabilityProber,
        release_delay: float = 1.0,
    ):
        """
        Args:
            roots: Source and target roots
            fingerprints: Store updated after every successful copy
            locks: Registry serializing syncs per path
            prober: Gate that waits for writers to finish
            release_delay: Seconds to keep a path active after its sync
        """
        self.roots = roots
        self.fingerprints = fingerprints
        self.locks = locks
        self.prober = prober
        self.release_delay = release_delay

        self.copies = 0
        self.skipped = 0
        self.failures = 0
        self._errors: dict[str, str] = {}
        self._last_sync: dict[str, datetime] = {}

    async def execute(self, file_path: str | Path, direction: SyncDirection) -> bool:
        """
        Sync one changed file in the given direction.

        Args:
            file_path: Absolute path of the file that changed
            direction: Which way the change travels

        Returns:
            bool: True if the file was copied
        """
        key = os.fspath(file_path)
        if self.locks.is_blocked(key):
            logger.debug(f"Sync superseded, {key} is locked")
            self.skipped += 1
            return False

        self.locks.acquire(key)
        counterpart = None
        try:
            paths = self.roots.resolve(key, direction)
            # The destination is written by this sync, lock it too so its echo
            # cannot start a reverse sync while the pair is unconfirmed
            counterpart = os.fspath(paths.write_to)
            self.locks.acquire(counterpart)
            return await self._sync(paths, direction)
        except Exception as error:
            self.failures += 1
            self._errors[key] = str(error)
            logger.error(f"Unexpected error syncing {key}: {error}", exc_info=True)
            return False
        finally:
            self.locks.release_later(key, self.release_delay)
            if counterpart is not None:
                self.locks.release_later(counterpart, self.release_delay)

    async def _sync(self, paths: SyncPaths, direction: SyncDirection) -> bool:
        key = os.fspath(paths.read_from)

        if not await self.prober.await_stable(paths.read_from):
            logger.debug(f"{paths.read_from} did not settle, skipping")
            self.skipped += 1
            return False

        if not await self.fingerprints.check_changed(paths.read_from):
            logger.debug(f"{paths.read_from} matches its last fingerprint, skipping")
            self.skipped += 1
            return False

        try:
            ensure_parent_dir(paths.write_to)
            await asyncio.to_thread(copy_file, paths.read_from, paths.write_to)
        except OSError as error:
            if not paths.read_from.exists():
                # Source vanished between the checks and the copy
                logger.debug(f"{paths.read_from} disappeared before it could be copied")
                self.skipped += 1
                return False
            self.failures += 1
            self._errors[key] = str(error)
            logger.warning(f"Could not write {paths.write_to}: {error}")
            return False

        if not await self.fingerprints.confirm_pair(paths.read_from, paths.write_to):
            logger.debug(f"{paths.read_from} changed during copy, fingerprints left for the next event")

        self.copies += 1
        self._errors.pop(key, None)
        self._last_sync[key] = datetime.now()
        logger.success(f"{direction.label}: {paths.relative.as_posix()}")
        return True

    def get_status(self) -> dict:
        """Get the executor's counters, errors and last sync times.

        Returns:
            dict: copies, skipped, failures, errors and last_sync entries
        """
        return {
            "copies": self.copies,
            "skipped": self.skipped,
            "failures": self.failures,
            "errors": dict(self._errors),
            "last_sync": {k: v.isoformat() for k, v in self._last_sync.items()},
        }
