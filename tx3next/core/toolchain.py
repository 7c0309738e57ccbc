"""Optional TX3 toolchain setup.

Installing trix through tx3up and copying the devnet bundle are best-effort:
failures are reported as BestEffortError and the install pipeline carries on.
"""

import logging
import os
import shutil
from pathlib import Path

from tx3next.template.files import DEVNET_BUNDLE_DIR
from tx3next.utils.filesystem import copy_directory
from tx3next.utils.process import CommandError, run_command

logger = logging.getLogger("tx3next.toolchain")

DEVNET_DIR = "devnet"


class BestEffortError(Exception):
    """An optional step failed; the install continues without it."""


def toolchain_bin_dir() -> Path:
    """Directory where tx3up places the toolchain binaries."""
    tx3_root = os.environ.get("TX3_ROOT")
    base = Path(tx3_root) if tx3_root else Path.home() / ".tx3"
    return base / "default" / "bin"


def find_executable(name: str) -> str | None:
    """Look a toolchain binary up on PATH, then in the tx3up directory."""
    found = shutil.which(name)
    if found:
        return found
    candidate = toolchain_bin_dir() / name
    if candidate.is_file():
        return str(candidate)
    return None


def install_toolchain(root: Path, installer: str) -> str:
    """Make sure trix is installed.

    Args:
        root: Directory to run the installer from
        installer: Shell command line that installs tx3up

    Returns:
        Path to the trix executable

    Raises:
        BestEffortError: If trix could not be installed
    """
    trix = find_executable("trix")
    if trix:
        logger.info("trix already installed at %s", trix)
        return trix

    logger.info("Installing the TX3 toolchain")
    try:
        if find_executable("tx3up") is None:
            run_command([installer], cwd=root, capture=False, shell=True)
        tx3up = find_executable("tx3up")
        if tx3up is None:
            raise BestEffortError("tx3up installer finished but tx3up was not found")
        run_command([tx3up], cwd=root, capture=False)
    except CommandError as e:
        raise BestEffortError(f"TX3 toolchain installation failed: {e}") from e

    trix = find_executable("trix")
    if trix is None:
        raise BestEffortError("tx3up finished but trix was not found")
    return trix


def copy_devnet_bundle(root: Path) -> list[Path]:
    """Copy the devnet configuration into the project if trix is available.

    Returns:
        Paths of the files written

    Raises:
        BestEffortError: If trix is missing or the files cannot be copied
    """
    if find_executable("trix") is None:
        raise BestEffortError("trix is not available; skipping devnet setup")

    try:
        written = copy_directory(DEVNET_BUNDLE_DIR, root / DEVNET_DIR)
    except OSError as e:
        raise BestEffortError(f"Failed to copy devnet configuration: {e}") from e

    logger.info("Copied %d devnet file(s)", len(written))
    return written
