"""Project model representing a Next.js project on disk."""

from pathlib import Path
from typing import Any

from tx3next.config.parser import load_json, parse_json_object, save_json
from tx3next.utils.filesystem import read_text_file

NEXT_CONFIG_NAMES = ("next.config.ts", "next.config.mjs", "next.config.js")

# Directories whose presence marks a Next.js project
NEXT_APP_DIRS = ("pages", "app", "src/pages", "src/app")

LOCKFILES = ("pnpm-lock.yaml", "yarn.lock", "package-lock.json")

TX3_SCRIPT_NAMES = ("tx3:generate", "watch:tx3")


class NextProject:
    """A Next.js project rooted at an explicit directory.

    All paths are resolved against the root; nothing here depends on the
    process working directory.
    """

    def __init__(self, root: Path):
        """Initialize a NextProject.

        Args:
            root: Path to the project root directory
        """
        self._root = root.resolve()

    @property
    def root(self) -> Path:
        """Get the project root directory."""
        return self._root

    @property
    def package_json_path(self) -> Path:
        return self._root / "package.json"

    @property
    def tsconfig_path(self) -> Path:
        return self._root / "tsconfig.json"

    @property
    def tx3_dir(self) -> Path:
        return self._root / "tx3"

    def find_next_config(self) -> Path | None:
        """Get the first next.config.* file present, if any."""
        for name in NEXT_CONFIG_NAMES:
            path = self._root / name
            if path.is_file():
                return path
        return None

    def new_next_config_path(self) -> Path:
        """Path to use when no next config exists yet."""
        if self.tsconfig_path.exists():
            return self._root / "next.config.ts"
        return self._root / "next.config.js"

    def find_lockfile(self) -> Path | None:
        for name in LOCKFILES:
            path = self._root / name
            if path.is_file():
                return path
        return None

    def load_package_json(self) -> dict[str, Any]:
        """Load package.json.

        Raises:
            ConfigError: If the file is missing
            ParseError: If the file is not a JSON object
        """
        return load_json(self.package_json_path)

    def save_package_json(self, data: dict[str, Any]) -> None:
        save_json(self.package_json_path, data)

    def read_tsconfig_text(self) -> str:
        return read_text_file(self.tsconfig_path)

    def project_name(self) -> str:
        """Get the package name, falling back to the directory name."""
        try:
            text = self.package_json_path.read_text(encoding="utf-8")
            name = parse_json_object(text).get("name")
        except (OSError, ValueError):
            name = None
        return name if isinstance(name, str) and name else self._root.name

    def relative(self, path: Path) -> str:
        """Render a path relative to the project root, with forward slashes."""
        try:
            return path.relative_to(self._root).as_posix()
        except ValueError:
            return str(path)

    def __repr__(self) -> str:
        return f"NextProject(root={self._root!r})"


def declared_dependencies(package_json: dict[str, Any]) -> set[str]:
    """Collect every package listed in dependencies or devDependencies."""
    names: set[str] = set()
    for key in ("dependencies", "devDependencies"):
        section = package_json.get(key)
        if isinstance(section, dict):
            names.update(section)
    return names


def has_tx3_scripts(package_json: dict[str, Any]) -> bool:
    scripts = package_json.get("scripts")
    if not isinstance(scripts, dict):
        return False
    return any(name in scripts for name in TX3_SCRIPT_NAMES)
