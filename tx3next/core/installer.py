"""TX3 installation pipeline.

This module contains the InstallPipeline which validates a Next.js project,
computes an installation plan, backs up every file the plan touches and then
runs the mutation steps. A failing critical step restores all backups; a
failing best-effort step is only reported.

The same plan drives both ``--dry-run`` previews and real installs, so the
two cannot disagree about what is missing.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from tx3next.config.parser import load_installer_config
from tx3next.config.schemas import DEVNET_SCRIPT, InstallerConfig
from tx3next.core.backup import BackupManager
from tx3next.core.merge import merge_scripts, merge_tsconfig_paths, merge_webpack_config
from tx3next.core.package_manager import PackageManager
from tx3next.core.project import NextProject
from tx3next.core.toolchain import copy_devnet_bundle, install_toolchain
from tx3next.core.validation import (
    ValidationResult,
    validate_existing_project,
    validate_fresh_project,
)
from tx3next.template.files import TemplateFile, tx3_template_files
from tx3next.utils.filesystem import (
    missing_parents,
    remove_empty_directories,
    write_text_file,
)

logger = logging.getLogger("tx3next.installer")

# (message, default) -> answer
ConfirmCallback = Callable[[str, bool], bool]


class InstallError(Exception):
    """Error during TX3 installation."""


class ProjectValidationError(InstallError):
    """The project failed validation; nothing was changed."""

    def __init__(self, result: ValidationResult):
        self.result = result
        message = "Project validation failed:\n" + "\n".join(f"  - {e}" for e in result.errors)
        super().__init__(message)


class MutationError(InstallError):
    """A critical step failed and the project files were rolled back."""

    def __init__(
        self,
        step: str,
        cause: Exception,
        rollback_failures: list[tuple[Path, Exception]] | None = None,
    ):
        self.step = step
        self.cause = cause
        self.rollback_failures = rollback_failures or []
        message = f"{step} failed: {cause}"
        if self.rollback_failures:
            message += f"\n  {len(self.rollback_failures)} file(s) could not be restored:"
            message += "".join(f"\n    - {path}: {err}" for path, err in self.rollback_failures)
        super().__init__(message)


class InstallState(Enum):
    """Where an install run currently is."""

    IDLE = "idle"
    VALIDATING = "validating"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"
    CONFIRMED = "confirmed"
    PREVIEWING = "previewing"
    BACKING_UP = "backing-up"
    MUTATING = "mutating"
    COMPLETED = "completed"
    ROLLING_BACK = "rolling-back"
    FAILED = "failed"


class StepKind(Enum):
    """Whether a step failing rolls the install back."""

    CRITICAL = "critical"
    BEST_EFFORT = "best-effort"


@dataclass
class InstallOptions:
    """Switches for one install run."""

    dry_run: bool = False
    force: bool = False
    fresh: bool = False
    skip_webpack: bool = False
    skip_toolchain: bool = False


@dataclass
class PipelineStep:
    """One mutation step. The action returns a description of what it did,
    or None when there was nothing to do."""

    name: str
    kind: StepKind
    action: Callable[[], str | None]


@dataclass
class InstallationPlan:
    """Everything an install would change, computed without writing."""

    package_manager: PackageManager
    missing_packages: list[str]
    missing_dev_packages: list[str]
    scripts: dict[str, str]
    tsconfig_path: Path
    tsconfig_content: str
    tsconfig_changed: bool
    next_config_path: Path | None = None
    next_config_content: str | None = None
    next_config_exists: bool = False
    next_config_changed: bool = False
    files_to_write: list[TemplateFile] = field(default_factory=list)
    files_to_backup: list[Path] = field(default_factory=list)
    install_toolchain: bool = False
    devnet: bool = False


@dataclass
class InstallSummary:
    """Outcome of an install run."""

    state: InstallState
    plan: InstallationPlan | None = None
    validation: ValidationResult | None = None
    actions: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        return self.state is InstallState.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.state is InstallState.CANCELLED


class InstallPipeline:
    """Installs TX3 into one Next.js project.

    All work happens relative to the given root; the process working
    directory is never consulted or changed.
    """

    def __init__(
        self,
        root: Path,
        options: InstallOptions | None = None,
        confirm: ConfirmCallback | None = None,
        config: InstallerConfig | None = None,
    ):
        """Initialize the pipeline.

        Args:
            root: Project root directory
            options: Run switches (dry-run, force, fresh, ...)
            confirm: Asks the user a yes/no question; without one, every
                question gets its default answer
            config: Installer settings; read from tx3next.yaml when omitted
        """
        self.project = NextProject(root)
        self.options = options or InstallOptions()
        self.confirm = confirm
        self.config = config if config is not None else load_installer_config(self.project.root)
        self.backups = BackupManager(self.project.root)
        self.state = InstallState.IDLE
        self._created_dirs: list[Path] = []

    def _transition(self, state: InstallState) -> None:
        logger.debug("Install state: %s -> %s", self.state.value, state.value)
        self.state = state

    def _ask(self, message: str, default: bool) -> bool:
        if self.confirm is None:
            return default
        return self.confirm(message, default)

    def run(self) -> InstallSummary:
        """Run the pipeline from validation to completion.

        Returns:
            InstallSummary; its state is COMPLETED, PREVIEWING or CANCELLED

        Raises:
            ProjectValidationError: If the project is not installable
            ConflictError: If next.config already customizes webpack
            ConfigError: If a configuration file cannot be read or parsed
            InstallError: If the backup cannot be created or an earlier
                backup area is still present
            MutationError: If a critical step failed (files were rolled back)
        """
        validation = self.validate()
        for warning in validation.warnings:
            logger.warning(warning)

        plan = self.plan()

        if self.options.dry_run:
            self._transition(InstallState.PREVIEWING)
            return InstallSummary(state=self.state, plan=plan, validation=validation)

        if not self.options.force:
            proceed = True
            if validation.has_tx3_warning:
                proceed = self._ask("TX3 appears to already be installed. Continue anyway?", False)
            if proceed:
                proceed = self._ask("Install TX3 capabilities to this Next.js project?", True)
            if not proceed:
                logger.info("Installation cancelled")
                self._transition(InstallState.CANCELLED)
                return InstallSummary(state=self.state, plan=plan, validation=validation)

        self._transition(InstallState.CONFIRMED)
        summary = InstallSummary(state=self.state, plan=plan, validation=validation)
        self.execute(plan, summary)
        return summary

    def validate(self) -> ValidationResult:
        """Validate the project, strictly unless it is fresh.

        Raises:
            ProjectValidationError: If any validation error was found
        """
        self._transition(InstallState.VALIDATING)
        if self.options.fresh:
            result = validate_fresh_project(self.project.root)
        else:
            result = validate_existing_project(self.project.root)

        if not result.is_valid:
            self._transition(InstallState.BLOCKED)
            raise ProjectValidationError(result)
        return result

    def plan(self) -> InstallationPlan:
        """Compute what the install would change, without writing anything."""
        project = self.project
        package_manager = PackageManager.detect(project.root)
        package_json = project.load_package_json()

        if not project.tsconfig_path.exists():
            self._transition(InstallState.BLOCKED)
            raise ProjectValidationError(ValidationResult(errors=("tsconfig.json not found",)))

        tsconfig_text = project.read_tsconfig_text()
        tsconfig_content = merge_tsconfig_paths(tsconfig_text)

        plan = InstallationPlan(
            package_manager=package_manager,
            missing_packages=package_manager.get_missing_packages(
                package_json, self.config.packages
            ),
            missing_dev_packages=package_manager.get_missing_packages(
                package_json, self.config.dev_packages
            ),
            scripts=dict(self.config.scripts),
            tsconfig_path=project.tsconfig_path,
            tsconfig_content=tsconfig_content,
            tsconfig_changed=tsconfig_content != tsconfig_text,
            files_to_write=tx3_template_files(project.project_name(), self.config.trp_endpoint),
            install_toolchain=self.config.install_toolchain and not self.options.skip_toolchain,
            devnet=self.config.devnet and not self.options.skip_toolchain,
        )

        if not self.options.skip_webpack:
            existing = project.find_next_config()
            if existing is not None:
                source = existing.read_text(encoding="utf-8")
                plan.next_config_path = existing
                plan.next_config_exists = True
                plan.next_config_content = merge_webpack_config(source)
                plan.next_config_changed = plan.next_config_content != source
            else:
                plan.next_config_path = project.new_next_config_path()
                plan.next_config_content = merge_webpack_config(
                    None, typescript=plan.next_config_path.suffix == ".ts"
                )
                plan.next_config_changed = True

        plan.files_to_backup = [
            project.package_json_path,
            project.root / package_manager.lockfile,
            project.tsconfig_path,
        ]
        if plan.next_config_path is not None:
            plan.files_to_backup.append(plan.next_config_path)
        plan.files_to_backup.extend(project.root / f.path for f in plan.files_to_write)

        return plan

    def execute(self, plan: InstallationPlan, summary: InstallSummary) -> None:
        """Back up, then run every step of the plan.

        Raises:
            InstallError: If the backup could not be taken, or a backup area
                left by an earlier failed rollback is still present
            MutationError: If a critical step failed
        """
        self._transition(InstallState.BACKING_UP)
        if self.backups.backup_dir.exists():
            self._transition(InstallState.FAILED)
            raise InstallError(
                f"{self.backups.backup_dir} already exists and may hold the only copies "
                "of files from an earlier failed install. Restore or remove it first."
            )
        try:
            self.backups.ensure_backup_area()
            for path in plan.files_to_backup:
                self.backups.backup_file(path)
        except OSError as e:
            self.backups.cleanup()
            self._transition(InstallState.FAILED)
            raise InstallError(f"Failed to create backup: {e}") from e
        logger.info("Backed up %d file(s)", len(plan.files_to_backup))

        self._transition(InstallState.MUTATING)
        for step in self.build_steps(plan):
            logger.info("%s...", step.name)
            try:
                action = step.action()
            except Exception as e:
                if step.kind is StepKind.BEST_EFFORT:
                    logger.warning("%s skipped: %s", step.name, e)
                    summary.warnings.append(f"{step.name}: {e}")
                    continue
                self._rollback(step.name, e)
            if action:
                summary.actions.append(action)

        self.backups.cleanup()
        self._transition(InstallState.COMPLETED)
        summary.state = self.state
        logger.info("TX3 installation complete")

    def build_steps(self, plan: InstallationPlan) -> list[PipelineStep]:
        """The ordered mutation steps for a plan."""
        steps = [
            PipelineStep(
                "Install TX3 packages",
                StepKind.CRITICAL,
                lambda: self._install_packages(plan, dev=False),
            ),
            PipelineStep(
                "Install TX3 dev packages",
                StepKind.CRITICAL,
                lambda: self._install_packages(plan, dev=True),
            ),
            PipelineStep(
                "Update TypeScript configuration",
                StepKind.CRITICAL,
                lambda: self._write_tsconfig(plan),
            ),
            PipelineStep(
                "Add TX3 scripts",
                StepKind.CRITICAL,
                lambda: self._add_scripts(plan.scripts),
            ),
        ]
        if plan.next_config_path is not None:
            steps.append(
                PipelineStep(
                    "Update Next.js configuration",
                    StepKind.CRITICAL,
                    lambda: self._write_next_config(plan),
                )
            )
        steps.append(
            PipelineStep("Create TX3 files", StepKind.CRITICAL, lambda: self._write_files(plan))
        )
        if plan.install_toolchain:
            steps.append(
                PipelineStep(
                    "Install TX3 toolchain",
                    StepKind.BEST_EFFORT,
                    self._install_toolchain,
                )
            )
        if plan.devnet:
            steps.append(PipelineStep("Set up devnet", StepKind.BEST_EFFORT, self._setup_devnet))
        return steps

    def _rollback(self, step: str, cause: Exception) -> None:
        """Restore every backup and raise MutationError."""
        self._transition(InstallState.ROLLING_BACK)
        logger.error("%s failed: %s", step, cause)
        logger.warning("Rolling back changes...")

        failures = [(entry.original_path, err) for entry, err in self.backups.restore_all()]
        try:
            remove_empty_directories(self._created_dirs)
        except OSError as e:
            logger.error("Failed to remove created directories: %s", e)

        if failures:
            logger.error("Backups kept in %s", self.backups.backup_dir)
        else:
            self.backups.cleanup()
            logger.warning("Rollback completed")

        self._transition(InstallState.FAILED)
        raise MutationError(step, cause, failures) from cause

    def _install_packages(self, plan: InstallationPlan, dev: bool) -> str | None:
        packages = plan.missing_dev_packages if dev else plan.missing_packages
        if not packages:
            return None
        plan.package_manager.install_packages(packages, dev=dev)
        return f"Installed {', '.join(packages)}{' (dev)' if dev else ''}"

    def _write_tsconfig(self, plan: InstallationPlan) -> str | None:
        if not plan.tsconfig_changed:
            return None
        write_text_file(plan.tsconfig_path, plan.tsconfig_content)
        return "Updated tsconfig.json with TX3 path mappings"

    def _add_scripts(self, scripts: dict[str, str]) -> str:
        # Re-read: the package manager has rewritten package.json by now
        package_json = self.project.load_package_json()
        merge_scripts(package_json, scripts)
        self.project.save_package_json(package_json)
        return f"Added scripts: {', '.join(scripts)}"

    def _write_next_config(self, plan: InstallationPlan) -> str | None:
        assert plan.next_config_path is not None and plan.next_config_content is not None
        if not plan.next_config_changed:
            return None
        write_text_file(plan.next_config_path, plan.next_config_content)
        verb = "Updated" if plan.next_config_exists else "Created"
        return f"{verb} {plan.next_config_path.name} with TX3 webpack configuration"

    def _write_files(self, plan: InstallationPlan) -> str:
        for template_file in plan.files_to_write:
            path = self.project.root / template_file.path
            self._created_dirs.extend(missing_parents(path.parent, self.project.root))
            write_text_file(path, template_file.content)
        return f"Created {', '.join(f.path for f in plan.files_to_write)}"

    def _install_toolchain(self) -> str:
        trix = install_toolchain(self.project.root, self.config.toolchain_installer)
        return f"TX3 toolchain available at {trix}"

    def _setup_devnet(self) -> str:
        written = copy_devnet_bundle(self.project.root)
        name, command = DEVNET_SCRIPT
        package_json = self.project.load_package_json()
        merge_scripts(package_json, {name: command})
        self.project.save_package_json(package_json)
        files = ", ".join(self.project.relative(p) for p in written)
        return f"Created {files} and added '{name}' script"
