"""Value types shared by the sync engine."""

from enum import Enum
from pathlib import Path
from typing import NamedTuple


class SyncDirection(Enum):
    """Which way a change travels, decided by the root it was observed under."""

    SOURCE_TO_TARGET = "source-to-target"
    TARGET_TO_SOURCE = "target-to-source"

    @property
    def label(self) -> str:
        """Human-readable arrow label used in sync notices."""
        if self is SyncDirection.SOURCE_TO_TARGET:
            return "Source→Target"
        return "Target→Source"


class SyncPaths(NamedTuple):
    """Resolved endpoints of a single sync."""

    read_from: Path
    write_to: Path
    relative: Path


class SyncRoots(NamedTuple):
    """The two peer trees kept in sync."""

    source: Path
    target: Path

    def resolve(self, file_path: str | Path, direction: SyncDirection) -> SyncPaths:
        """
        Map a changed file onto the same relative path under the other root.

        Args:
            file_path: Absolute path of the changed file
            direction: Direction of the sync

        Returns:
            SyncPaths: read_from is file_path itself, write_to lives under the other root

        Raises:
            ValueError: If file_path is not under the root the direction reads from
        """
        read_from = Path(file_path)
        if direction is SyncDirection.SOURCE_TO_TARGET:
            relative = read_from.relative_to(self.source)
            write_to = self.target / relative
        else:
            relative = read_from.relative_to(self.target)
            write_to = self.source / relative
        return SyncPaths(read_from=read_from, write_to=write_to, relative=relative)

    def classify(self, file_path: str | Path) -> SyncDirection | None:
        """
        Decide the direction of a change from the root the path falls under.

        When one root is nested in the other the deeper root wins.

        Args:
            file_path: Absolute path of the changed file

        Returns:
            The direction, or None for paths outside both roots
        """
        path = Path(file_path)
        candidates = []
        if path.is_relative_to(self.source):
            candidates.append((len(self.source.parts), SyncDirection.SOURCE_TO_TARGET))
        if path.is_relative_to(self.target):
            candidates.append((len(self.target.parts), SyncDirection.TARGET_TO_SOURCE))
        if not candidates:
            return None
        return max(candidates, key=lambda item: item[0])[1]
