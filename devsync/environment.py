"""Environment configuration management."""

import os
import sys
from typing import Any, Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

load_dotenv()

ENV_PREFIX = "DEVSYNC_"

DEFAULT_IGNORE_PATTERNS = [
    ".git",
    ".svn",
    ".hg",
    ".DS_Store",
    "Thumbs.db",
    "node_modules",
    "*-original",
    "*-backup",
]


class SettingsError(Exception):
    """Raised when the sync configuration is invalid."""

    pass


class SyncSettings(BaseModel):
    """Timings and filters for a sync session. All durations are in seconds."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source_debounce: float = Field(2.0, gt=0, description="Quiet period before a source change is copied")
    target_debounce: float = Field(4.0, gt=0, description="Quiet period before a target change is copied")
    lock_timeout: float = Field(10.0, gt=0, description="Hard bound on the actively-syncing flag")
    recent_window: float = Field(5.0, ge=0, description="How long a released path stays recently-synced")
    touch_window: float = Field(3.0, ge=0, description="Events this soon after a recorded sync are dropped")
    release_delay: float = Field(1.0, ge=0, description="Cool-down before an executed path is released")
    probe_interval: float = Field(0.5, gt=0, description="Gap between the two stability snapshots")
    probe_retry_delay: float = Field(1.0, ge=0, description="Wait between stability attempts")
    probe_attempts: int = Field(3, ge=1, description="Stability attempts before giving up")
    empty_file_retries: int = Field(10, ge=0, description="Zero-size waits allowed before giving up")
    write_settle: float = Field(1.0, ge=0, description="Watcher-level inactivity required per path")
    ignore_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    backup_suffix: str = Field("-original", min_length=1)
    debug: bool = Field(False, description="Enable debug logging")
    log_level: str = Field("INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None, **overrides: Any) -> "SyncSettings":
        """
        Build settings from DEVSYNC_* variables, with explicit overrides on top.

        Args:
            environ: Mapping to read from, defaults to os.environ
            **overrides: Field values that win over the environment

        Returns:
            Validated settings

        Raises:
            SettingsError: If any value fails validation
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            if name == "ignore_patterns":
                values[name] = [item.strip() for item in raw.split(",") if item.strip()]
            elif name == "debug":
                values[name] = raw.lower() in ("true", "1", "yes")
            elif name == "log_level":
                values[name] = raw.upper()
            else:
                values[name] = raw
        values.update({key: value for key, value in overrides.items() if value is not None})

        try:
            return cls(**values)
        except ValidationError as e:
            raise SettingsError(f"Invalid sync settings: {e}") from e

    @classmethod
    def load(cls, **overrides: Any) -> "SyncSettings":
        """Load settings from the environment and configure logging from them."""
        settings = cls.from_env(**overrides)

        logger.remove()
        log_level = "DEBUG" if settings.debug else settings.log_level
        logger.add(
            sys.stderr,
            level=log_level,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        )
        logger.debug(f"Loaded sync settings: {settings.model_dump()}")
        return settings


# Global settings instance
_settings: Optional[SyncSettings] = None


def get_settings() -> SyncSettings:
    """Get the settings singleton, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = SyncSettings.load()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None


def is_debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return get_settings().debug
