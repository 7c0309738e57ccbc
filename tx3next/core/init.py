"""Create a new Next.js project with TX3 installed.

The project itself is produced by the upstream generators (create-next-app
and the shadcn/ui CLI); this module only drives them, then runs the install
pipeline against the new directory and removes it again if anything fails.
"""

import logging
import re
from pathlib import Path

from tx3next.config.schemas import DEFAULT_SCAFFOLD_COMPONENTS, InstallerConfig
from tx3next.core.installer import InstallOptions, InstallPipeline, InstallSummary
from tx3next.utils.filesystem import remove_directory
from tx3next.utils.process import format_command, run_command

logger = logging.getLogger("tx3next.init")

PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9_-]+$", re.IGNORECASE)


class InitError(Exception):
    """Error creating a new project."""

    def __init__(self, message: str, cleanup_error: Exception | None = None):
        self.cleanup_error = cleanup_error
        if cleanup_error is not None:
            message += f"\n  Cleanup also failed: {cleanup_error}"
        super().__init__(message)


def validate_project_name(name: str) -> None:
    """Check a project name is usable as a directory and package name.

    Raises:
        InitError: If the name is empty or has unsupported characters
    """
    if not name.strip():
        raise InitError("Project name is required")
    if not PROJECT_NAME_PATTERN.match(name):
        raise InitError(
            "Project name can only contain letters, numbers, hyphens, and underscores"
        )


class Scaffolder:
    """Runs create-next-app and shadcn/ui init."""

    def __init__(self, components: list[str] | None = None):
        self.components = (
            list(components) if components is not None else list(DEFAULT_SCAFFOLD_COMPONENTS)
        )

    def commands(self, parent_dir: Path, name: str) -> list[tuple[list[str], Path]]:
        """The generator commands and the directory each runs in."""
        return [
            (
                [
                    "npx",
                    "create-next-app@latest",
                    name,
                    "--app",
                    "--tailwind",
                    "--eslint",
                    "--typescript",
                    "--no-src-dir",
                    "--no-import-alias",
                    "--turbopack",
                    "--yes",
                ],
                parent_dir,
            ),
            (["npx", "shadcn@latest", "init", "-y", *self.components], parent_dir / name),
        ]

    def create(self, parent_dir: Path, name: str) -> None:
        """Generate the project, streaming generator output to the terminal.

        Raises:
            CommandError: If a generator fails
        """
        for cmd, cwd in self.commands(parent_dir, name):
            logger.info("Running: %s (in %s)", format_command(cmd), cwd)
            run_command(cmd, cwd=cwd, capture=False)


class InitPipeline:
    """Scaffolds a project, then installs TX3 into it."""

    def __init__(
        self,
        parent_dir: Path,
        project_name: str,
        scaffolder: Scaffolder | None = None,
        config: InstallerConfig | None = None,
    ):
        """Initialize the pipeline.

        Args:
            parent_dir: Directory the project is created in
            project_name: Name of the new project directory
            scaffolder: Generator driver (defaults to create-next-app + shadcn)
            config: Installer settings for the TX3 install
        """
        self.parent_dir = parent_dir.resolve()
        self.project_name = project_name
        self.config = config or InstallerConfig()
        self.scaffolder = scaffolder or Scaffolder(self.config.scaffold_components)

    @property
    def target(self) -> Path:
        return self.parent_dir / self.project_name

    def check(self) -> None:
        """Fail early if the project cannot be created.

        Raises:
            InitError: If the name is invalid, the parent is missing or the
                target directory already exists
        """
        validate_project_name(self.project_name)
        if not self.parent_dir.is_dir():
            raise InitError(f"Directory does not exist: {self.parent_dir}")
        if self.target.exists():
            raise InitError(f"Directory '{self.project_name}' already exists")

    def preview(self) -> list[str]:
        """Commands a real run would execute, as display strings."""
        self.check()
        return [
            f"{format_command(cmd)} (in {cwd})"
            for cmd, cwd in self.scaffolder.commands(self.parent_dir, self.project_name)
        ]

    def run(self) -> InstallSummary:
        """Create the project and install TX3 into it.

        Returns:
            Summary of the TX3 install

        Raises:
            InitError: If any stage fails; the new directory has been removed
        """
        self.check()

        try:
            self.scaffolder.create(self.parent_dir, self.project_name)
            if not self.target.is_dir():
                raise InitError(f"Scaffolding finished but {self.target} was not created")
            logger.info("Project created in %s", self.target)

            pipeline = InstallPipeline(
                self.target,
                InstallOptions(force=True, fresh=True),
                config=self.config,
            )
            return pipeline.run()
        except Exception as e:
            cleanup_error = self._cleanup()
            raise InitError(f"Project initialization failed: {e}", cleanup_error) from e

    def _cleanup(self) -> Exception | None:
        """Remove the partially created project. Returns the error, if any."""
        try:
            if remove_directory(self.target):
                logger.warning("Removed partially created project %s", self.target)
        except OSError as e:
            logger.error("Failed to clean up %s: %s", self.target, e)
            return e
        return None
