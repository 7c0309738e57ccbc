"""Filesystem utilities for tx3next."""

import os
import shutil
from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def copy_file(src: Path, dest: Path) -> Path:
    """Copy a file byte-for-byte to a destination.

    Args:
        src: Source file path
        dest: Destination path (file or directory)

    Returns:
        Path to the copied file
    """
    if dest.is_dir():
        dest = dest / src.name
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest)
    return dest


def copy_directory(src: Path, dest: Path) -> list[Path]:
    """Copy the files of a directory into a destination directory.

    Existing files in the destination with the same names are overwritten,
    other files are left alone.

    Args:
        src: Source directory path
        dest: Destination directory path

    Returns:
        Paths of the files written
    """
    written: list[Path] = []
    for item in sorted(src.rglob("*")):
        if item.is_file():
            target = dest / item.relative_to(src)
            written.append(copy_file(item, target))
    return written


def remove_directory(path: Path) -> bool:
    """Remove a directory and its contents.

    Args:
        path: Directory path to remove

    Returns:
        True if the directory was removed, False if it didn't exist
    """
    if not path.exists():
        return False
    shutil.rmtree(path)
    return True


def remove_file(path: Path) -> bool:
    """Remove a file.

    Args:
        path: File path to remove

    Returns:
        True if the file was removed, False if it didn't exist
    """
    if not path.exists():
        return False
    path.unlink()
    return True


def remove_empty_directories(paths: list[Path]) -> list[Path]:
    """Remove directories that are empty, deepest first.

    Args:
        paths: Candidate directories

    Returns:
        The directories that were removed
    """
    removed: list[Path] = []
    for path in sorted(paths, key=lambda p: len(p.parts), reverse=True):
        if path.is_dir() and not any(path.iterdir()):
            path.rmdir()
            removed.append(path)
    return removed


def missing_parents(path: Path, root: Path) -> list[Path]:
    """List the directories between root and path that do not exist yet.

    Args:
        path: A file or directory path below root
        root: Directory to stop at

    Returns:
        Missing directories, outermost first
    """
    missing: list[Path] = []
    current = path
    while current != root and current != current.parent:
        if not current.exists():
            missing.append(current)
        current = current.parent
    return list(reversed(missing))


def is_writable_directory(path: Path) -> bool:
    """Check whether a path is an existing directory we can write into."""
    return path.is_dir() and os.access(path, os.W_OK | os.X_OK)


def read_text_file(path: Path) -> str:
    """Read a text file.

    Args:
        path: Path to the file

    Returns:
        File contents as a string
    """
    return path.read_text(encoding="utf-8")


def write_text_file(path: Path, content: str) -> None:
    """Write content to a text file.

    Args:
        path: Path to the file
        content: Content to write
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
