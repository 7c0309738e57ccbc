"""Pre-mutation backups of project files.

Every file an install may touch is copied into a sidecar directory before the
first write, so a failed install can put the project back exactly as it was.
Files that did not exist are recorded too, so rollback can delete them.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from tx3next.utils.filesystem import copy_file, ensure_directory, remove_directory, remove_file

logger = logging.getLogger("tx3next.backup")

BACKUP_DIR = ".tx3next-backup"


@dataclass(frozen=True)
class BackupEntry:
    """A file snapshot taken before mutation."""

    original_path: Path
    backup_path: Path | None
    existed_before: bool


class BackupManager:
    """Manages the backup area for a single install run."""

    def __init__(self, project_root: Path) -> None:
        """Initialize the backup manager.

        Args:
            project_root: Path to the project root directory
        """
        self.project_root = project_root.resolve()
        self._entries: list[BackupEntry] = []

    @property
    def backup_dir(self) -> Path:
        """Get the backup area path."""
        return self.project_root / BACKUP_DIR

    @property
    def entries(self) -> list[BackupEntry]:
        """Backups taken so far, in order."""
        return list(self._entries)

    def ensure_backup_area(self) -> Path:
        """Create the backup area if needed and keep it out of version control."""
        ensure_directory(self.backup_dir)
        gitignore_path = self.backup_dir / ".gitignore"
        if not gitignore_path.exists():
            gitignore_path.write_text("*\n")
        return self.backup_dir

    def _backup_path_for(self, path: Path) -> Path:
        try:
            rel_path = path.relative_to(self.project_root)
        except ValueError:
            rel_path = Path("_external") / path.name
        return self.backup_dir / rel_path

    def backup_file(self, path: Path) -> BackupEntry:
        """Snapshot a file before it is modified.

        Args:
            path: File that is about to be written

        Returns:
            The recorded BackupEntry
        """
        path = path.resolve()
        if path.is_file():
            backup_path = self._backup_path_for(path)
            copy_file(path, backup_path)
            entry = BackupEntry(original_path=path, backup_path=backup_path, existed_before=True)
            logger.debug("Backed up %s to %s", path, backup_path)
        else:
            entry = BackupEntry(original_path=path, backup_path=None, existed_before=False)
            logger.debug("Recorded %s as new file", path)

        self._entries.append(entry)
        return entry

    def restore_from_backup(self, entry: BackupEntry) -> None:
        """Put a file back into its pre-mutation state.

        Safe to call more than once for the same entry.

        Raises:
            OSError: If the file cannot be restored
            FileNotFoundError: If the backup copy has disappeared
        """
        if entry.existed_before:
            if entry.backup_path is None or not entry.backup_path.exists():
                raise FileNotFoundError(f"Backup missing for {entry.original_path}")
            entry.original_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(entry.backup_path, entry.original_path)
            logger.debug("Restored %s from backup", entry.original_path)
        elif remove_file(entry.original_path):
            logger.debug("Removed %s (created during install)", entry.original_path)

    def restore_all(self) -> list[tuple[BackupEntry, Exception]]:
        """Restore every entry, newest first, without stopping on failure.

        Returns:
            (entry, error) pairs for the entries that could not be restored
        """
        failures: list[tuple[BackupEntry, Exception]] = []
        for entry in reversed(self._entries):
            try:
                self.restore_from_backup(entry)
            except OSError as e:
                logger.error("Failed to restore %s: %s", entry.original_path, e)
                failures.append((entry, e))
        return failures

    def cleanup(self) -> None:
        """Remove the backup area and forget all entries."""
        if remove_directory(self.backup_dir):
            logger.debug("Removed backup area %s", self.backup_dir)
        self._entries.clear()
