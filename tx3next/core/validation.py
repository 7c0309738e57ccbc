"""Heuristic checks that a directory can receive a TX3 install.

Two levels of strictness: an existing project must look like a Next.js
project, while a fresh project just produced by the scaffolder only has to be
a writable directory.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from tx3next.config.parser import ConfigError
from tx3next.core.merge import has_tx3_webpack_config, has_webpack_config
from tx3next.core.project import (
    NEXT_APP_DIRS,
    NextProject,
    declared_dependencies,
    has_tx3_scripts,
)
from tx3next.utils.filesystem import is_writable_directory

logger = logging.getLogger("tx3next.validation")

TX3_ALREADY_INSTALLED = "TX3 files already exist in this project"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a project directory."""

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_tx3_warning(self) -> bool:
        """Whether TX3 looks installed already (needs confirmation)."""
        return TX3_ALREADY_INSTALLED in self.warnings


def validate_existing_project(root: Path) -> ValidationResult:
    """Validate that a directory is a Next.js project ready for TX3.

    Args:
        root: Project root directory

    Returns:
        ValidationResult with fatal errors and non-fatal warnings
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not root.is_dir():
        return ValidationResult(errors=(f"Directory does not exist: {root}",))

    project = NextProject(root)
    package_json: dict | None = None

    if not project.package_json_path.exists():
        errors.append("package.json not found. Run this command in a Next.js project root.")
    else:
        try:
            package_json = project.load_package_json()
        except ConfigError as e:
            errors.append(f"package.json is invalid: {e}")

    next_config = project.find_next_config()
    if not _has_next_indicator(project, package_json, next_config):
        errors.append(
            "No Next.js project detected (no 'next' dependency, pages/ or app/ "
            "directory, or next.config file)"
        )

    if not project.tsconfig_path.exists():
        errors.append("tsconfig.json not found. TX3 bindings require a TypeScript project.")

    if project.tx3_dir.exists() or (package_json is not None and has_tx3_scripts(package_json)):
        warnings.append(TX3_ALREADY_INSTALLED)

    if next_config is not None:
        try:
            source = next_config.read_text(encoding="utf-8")
        except OSError as e:
            warnings.append(f"Could not read {next_config.name}: {e}")
        else:
            if has_webpack_config(source) and not has_tx3_webpack_config(source):
                warnings.append(
                    f"{next_config.name} already defines a custom webpack configuration "
                    "which may conflict with the TX3 webpack settings"
                )

    if project.find_lockfile() is None:
        warnings.append("No lockfile found; assuming npm as the package manager")

    result = ValidationResult(errors=tuple(errors), warnings=tuple(warnings))
    logger.debug(
        "Validated %s: %d error(s), %d warning(s)",
        root,
        len(result.errors),
        len(result.warnings),
    )
    return result


def validate_fresh_project(root: Path) -> ValidationResult:
    """Validate a directory that the scaffolder has just created.

    Only existence and writability are checked; the shape of the project is
    trusted.
    """
    if not root.is_dir():
        return ValidationResult(errors=(f"Directory does not exist: {root}",))
    if not is_writable_directory(root):
        return ValidationResult(errors=(f"Directory is not writable: {root}",))
    return ValidationResult()


def _has_next_indicator(
    project: NextProject,
    package_json: dict | None,
    next_config: Path | None,
) -> bool:
    if package_json is not None and "next" in declared_dependencies(package_json):
        return True
    if next_config is not None or any(project.root.glob("next.config.*")):
        return True
    return any((project.root / name).is_dir() for name in NEXT_APP_DIRS)
