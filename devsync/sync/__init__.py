"""
Bidirectional file synchronization between a source tree and a target tree.
"""

from .models import SyncDirection, SyncPaths, SyncRoots
from .session import SyncSession, SyncSessionError, start, stop

__all__ = [
    'SyncDirection',
    'SyncPaths',
    'SyncRoots',
    'SyncSession',
    'SyncSessionError',
    'start',
    'stop',
]
