"""
Target Provisioning
===================

Lays down the initial copy of the source tree inside the environment's
mounted directory before a sync session starts. A target that already exists
is moved aside to a sibling backup the first time, and replaced on later runs
so the original content is only backed up once.
"""

import shutil
from pathlib import Path

from devsync.utils.file import is_ignored
from devsync.utils.rich_console import get_console_logger

logger = get_console_logger()


class ProvisionError(Exception):
    """Raised when the target tree cannot be prepared."""


def backup_path_for(target: str | Path, backup_suffix: str = "-original") -> Path:
    """Sibling directory that holds the target's original content."""
    target = Path(target)
    return target.with_name(target.name + backup_suffix)


def prepare_target(
    source: str | Path,
    target: str | Path,
    backup_suffix: str = "-original",
    ignore_patterns: list[str] | None = None,
) -> Path | None:
    """
    Replace the target tree with a fresh copy of the source tree.

    Args:
        source: Directory to copy from
        target: Directory to (re)create
        backup_suffix: Suffix of the sibling directory that keeps the
            target's original content
        ignore_patterns: fnmatch patterns of entries not to copy

    Returns:
        Path | None: The backup directory if one was created by this call

    Raises:
        ProvisionError: If the source is missing or the copy fails
    """
    source = Path(source).resolve()
    target = Path(target).resolve()
    patterns = list(ignore_patterns or [])

    if not source.is_dir():
        raise ProvisionError(f"Source directory does not exist: {source}")
    if target == source or target.is_relative_to(source):
        raise ProvisionError(f"Target {target} must not live inside the source tree")
    if source.is_relative_to(target):
        raise ProvisionError(f"Source {source} must not live inside the target tree")

    created_backup = None
    try:
        if target.exists():
            backup = backup_path_for(target, backup_suffix)
            if not backup.exists():
                logger.info(f"Backing up original {target.name} to {backup}")
                target.rename(backup)
                created_backup = backup
            else:
                shutil.rmtree(target)

        logger.info(f"Copying {source} to {target}")
        shutil.copytree(
            source,
            target,
            ignore=lambda directory, names: [name for name in names if is_ignored(name, patterns)],
        )
    except (OSError, shutil.Error) as e:
        raise ProvisionError(f"Could not prepare {target}: {e}") from e

    return created_backup
