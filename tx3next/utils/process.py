"""Blocking execution of external commands."""

import logging
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger("tx3next.process")


class CommandError(Exception):
    """An external command could not be run or exited non-zero."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ):
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


def format_command(cmd: list[str]) -> str:
    """Render a command list the way a user would type it."""
    return " ".join(cmd)


def run_command(
    cmd: list[str],
    cwd: Path,
    capture: bool = True,
    shell: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run a command and wait for it to exit.

    The executable is resolved through PATH first so that wrappers such as
    ``npm.cmd`` work on Windows.

    Args:
        cmd: Command and arguments
        cwd: Working directory for the child process
        capture: Capture stdout/stderr instead of inheriting the terminal
        shell: Run ``cmd[0]`` as a shell command line

    Returns:
        The completed process

    Raises:
        CommandError: If the executable is missing or exits non-zero
    """
    if shell:
        args: list[str] | str = cmd[0]
    else:
        executable = shutil.which(cmd[0]) or cmd[0]
        args = [executable, *cmd[1:]]

    logger.debug("Running command: %s (in %s)", format_command(cmd), cwd)
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            capture_output=capture,
            text=True,
            check=False,
            shell=shell,
        )
    except FileNotFoundError as e:
        logger.error("%s is not installed or not in PATH", cmd[0])
        raise CommandError(
            f"{cmd[0]} is not installed or not in PATH",
            command=cmd,
        ) from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        logger.error("Command failed: %s - %s", format_command(cmd), stderr)
        message = f"Command failed with exit code {result.returncode}: {format_command(cmd)}"
        if stderr:
            message += f"\n{stderr}"
        raise CommandError(
            message,
            command=cmd,
            returncode=result.returncode,
            stderr=stderr,
        )

    return result
