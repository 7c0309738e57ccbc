"""Package manager detection and install invocations.

The package manager is chosen from the lockfile present in the project root
and decides only the shape of the commands we run.
"""

import logging
from pathlib import Path
from typing import Any

from tx3next.config.schemas import PackageManagerKind
from tx3next.core.project import declared_dependencies
from tx3next.utils.process import run_command

logger = logging.getLogger("tx3next.package_manager")

# Checked in order; npm is the fallback
_LOCKFILE_KINDS: list[tuple[str, PackageManagerKind]] = [
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
]

_LOCKFILE_NAMES: dict[PackageManagerKind, str] = {
    "npm": "package-lock.json",
    "yarn": "yarn.lock",
    "pnpm": "pnpm-lock.yaml",
}


def detect_package_manager(root: Path) -> PackageManagerKind:
    """Detect the package manager of a project from its lockfile.

    Args:
        root: Project root directory

    Returns:
        "pnpm" if pnpm-lock.yaml exists, else "yarn" if yarn.lock exists,
        else "npm"
    """
    for lockfile, kind in _LOCKFILE_KINDS:
        if (root / lockfile).is_file():
            return kind
    return "npm"


class PackageManager:
    """Builds and runs commands for one package manager in one project."""

    def __init__(self, kind: PackageManagerKind, root: Path):
        self.kind = kind
        self.root = root

    @classmethod
    def detect(cls, root: Path) -> "PackageManager":
        return cls(detect_package_manager(root), root)

    @property
    def lockfile(self) -> str:
        """Lockfile name this package manager writes."""
        return _LOCKFILE_NAMES[self.kind]

    def install_command(self, packages: list[str], dev: bool = False) -> list[str]:
        """Build the command that adds packages to the project.

        Args:
            packages: Package names (optionally with @version)
            dev: Add as development dependencies

        Returns:
            Command list, e.g. ["pnpm", "add", "--save-dev", "glob"]
        """
        if self.kind == "npm":
            cmd = ["npm", "install"]
        else:
            cmd = [self.kind, "add"]

        if dev:
            cmd.append("--dev" if self.kind == "yarn" else "--save-dev")

        return cmd + list(packages)

    def run_command(self, script: str) -> list[str]:
        """Build the command that runs a package.json script."""
        if self.kind == "yarn":
            return ["yarn", script]
        return [self.kind, "run", script]

    def get_missing_packages(
        self, package_json: dict[str, Any], packages: list[str]
    ) -> list[str]:
        """Filter packages down to those the project does not declare yet.

        Args:
            package_json: Parsed package.json
            packages: Requested package names

        Returns:
            Missing packages, in request order
        """
        declared = declared_dependencies(package_json)
        return [name for name in packages if name not in declared]

    def install_packages(self, packages: list[str], dev: bool = False) -> None:
        """Install packages, blocking until the package manager exits.

        Raises:
            CommandError: If the package manager fails
        """
        if not packages:
            return
        logger.info(
            "Installing %s%s with %s",
            ", ".join(packages),
            " (dev)" if dev else "",
            self.kind,
        )
        run_command(self.install_command(packages, dev=dev), cwd=self.root)

    def __repr__(self) -> str:
        return f"PackageManager(kind={self.kind!r}, root={self.root!r})"
