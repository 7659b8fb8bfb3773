"""
Test Configuration and Fixtures
=============================

This module provides pytest fixtures and utilities for testing devsync.
"""

import asyncio
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from devsync.environment import SyncSettings
from devsync.sync.models import SyncRoots


async def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.02) -> bool:
    """Poll a predicate on the event loop until it holds or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(interval)
    return predicate()


class FakeClock:
    """Manually advanced replacement for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wait_for():
    """Expose wait_until to tests without importing conftest."""
    return wait_until


@pytest.fixture
def sync_roots(tmp_path: Path) -> SyncRoots:
    """
    Create empty source and target trees.

    Returns:
        SyncRoots: Resolved source and target directories
    """
    source = tmp_path / "wp-content"
    target = tmp_path / "wordpress" / "wp-content"
    source.mkdir()
    target.mkdir(parents=True)
    return SyncRoots(source.resolve(), target.resolve())


@pytest.fixture
def fast_settings() -> SyncSettings:
    """
    Settings with every delay scaled down so sessions run in well under a second.

    The ratios between windows follow the defaults: target changes wait
    longer than source changes and the touch window outlasts a sync.
    """
    return SyncSettings(
        source_debounce=0.15,
        target_debounce=0.3,
        lock_timeout=3.0,
        recent_window=0.5,
        touch_window=0.6,
        release_delay=0.1,
        probe_interval=0.05,
        probe_retry_delay=0.05,
        probe_attempts=3,
        empty_file_retries=2,
        write_settle=0.1,
    )
