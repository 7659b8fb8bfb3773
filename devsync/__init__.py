"""
devsync - bidirectional file synchronization for local development environments
"""

from devsync.environment import SyncSettings, get_settings
from devsync.sync import SyncDirection, SyncSession, SyncSessionError, start, stop

__version__ = "0.1.0"
__all__ = [
    "SyncDirection",
    "SyncSession",
    "SyncSessionError",
    "SyncSettings",
    "get_settings",
    "start",
    "stop",
]
