"""Inspection of files left behind by interrupted safe writes.

Nothing here changes the filesystem. Safe writes are never rolled back
automatically; these helpers tell an operator what is on disk so they can
decide which copy to keep.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from safefs.config import Settings


class RemnantState(Enum):
    """Where an interrupted safe write stopped, judged from what is on disk."""

    CLEAN = "clean"  # No staging or backup file
    STAGED = "staged"  # New content staged, never swapped in
    SWAPPING = "swapping"  # Old content in backup, new content still staged
    LIVE = "live"  # New content live, backup not yet removed
    BACKUP_ONLY = "backup_only"  # Only the backup survives
    UNKNOWN = "unknown"


@dataclass
class RemnantReport:
    """Files found for one managed path."""

    path: Path
    primary_exists: bool
    staging: Path | None
    backup: Path | None

    @property
    def clean(self) -> bool:
        return self.staging is None and self.backup is None

    @property
    def state(self) -> RemnantState:
        staged = self.staging is not None
        backed_up = self.backup is not None
        if not staged and not backed_up:
            return RemnantState.CLEAN
        if staged and not backed_up:
            return RemnantState.STAGED
        if staged and backed_up and not self.primary_exists:
            return RemnantState.SWAPPING
        if backed_up and not staged:
            return RemnantState.LIVE if self.primary_exists else RemnantState.BACKUP_ONLY
        return RemnantState.UNKNOWN

    @property
    def current(self) -> Path | None:
        """The file a safe read would return content from."""
        if self.primary_exists:
            return self.path
        return self.backup


def inspect_remnants(path: Path | str, settings: Settings | None = None) -> RemnantReport:
    """Report the primary, staging and backup files for path."""
    settings = settings or Settings()
    primary = Path(path)
    staging = Path(str(primary) + settings.new_ext)
    backup = Path(str(primary) + settings.bak_ext)
    return RemnantReport(
        path=primary,
        primary_exists=primary.is_file(),
        staging=staging if staging.exists() else None,
        backup=backup if backup.exists() else None,
    )


def find_remnants(directory: Path | str, settings: Settings | None = None) -> list[RemnantReport]:
    """Find every path under directory that has a staging or backup file."""
    settings = settings or Settings()
    root = Path(directory)
    if not root.is_dir():
        return []

    primaries: set[Path] = set()
    for ext in (settings.new_ext, settings.bak_ext):
        for leftover in root.rglob(f"*{ext}"):
            if leftover.name == ext:
                continue
            primaries.add(leftover.with_name(leftover.name[: -len(ext)]))

    return [inspect_remnants(p, settings) for p in sorted(primaries)]
