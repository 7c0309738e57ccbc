"""Main CLI application for tx3next."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from tx3next import __version__
from tx3next.config.parser import ConfigError, load_installer_config
from tx3next.core.init import InitError, InitPipeline
from tx3next.core.installer import (
    InstallationPlan,
    InstallError,
    InstallOptions,
    InstallPipeline,
    InstallSummary,
    ProjectValidationError,
)
from tx3next.core.merge import ConflictError
from tx3next.core.package_manager import PackageManager
from tx3next.utils.process import format_command

# Create the main Typer app
app = typer.Typer(
    name="tx3next",
    help="Add TX3 capabilities to Next.js projects",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

# Set up logger for the tx3next package
logger = logging.getLogger("tx3next")


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=verbosity >= 2,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠[/yellow] {escape(message)}")


def confirm(message: str, default: bool) -> bool:
    return typer.confirm(message, default=default)


def print_plan(plan: InstallationPlan) -> None:
    """Print the changes an install would make."""
    console.print("[yellow]DRY RUN - No changes will be made[/yellow]")
    console.print(f"Using package manager: [cyan]{plan.package_manager.kind}[/cyan]")
    console.print()

    if not plan.missing_packages and not plan.missing_dev_packages:
        console.print("[bold]Packages to install:[/bold]")
        console.print("  • All required packages already installed")
    else:
        table = Table(title="Packages to install")
        table.add_column("Package", style="cyan")
        table.add_column("Type", style="dim")
        for package in plan.missing_packages:
            table.add_row(package, "dependency")
        for package in plan.missing_dev_packages:
            table.add_row(package, "dev")
        console.print(table)

    console.print()
    console.print("[bold]Scripts to add to package.json:[/bold]")
    for name, command in plan.scripts.items():
        console.print(f"  • {name}: {command}", markup=False)

    console.print()
    console.print("[bold]Files to create:[/bold]")
    for template_file in plan.files_to_write:
        console.print(f"  • {template_file.path}")

    console.print()
    console.print("[bold]Configuration changes:[/bold]")
    if plan.tsconfig_changed:
        console.print("  • Update tsconfig.json with TX3 path mappings")
    else:
        console.print("  • tsconfig.json already has the TX3 path mappings")
    if plan.next_config_path is not None and not plan.next_config_changed:
        console.print(f"  • {plan.next_config_path.name} already has the TX3 webpack configuration")
    elif plan.next_config_path is not None:
        verb = "Update" if plan.next_config_exists else "Create"
        console.print(f"  • {verb} {plan.next_config_path.name} with TX3 webpack configuration")
    if plan.install_toolchain:
        console.print("  • Install the TX3 toolchain (trix) if missing")
    if plan.devnet:
        console.print("  • Copy devnet configuration and add the 'devnet' script")


def print_summary(summary: InstallSummary) -> None:
    for action in summary.actions:
        print_success(action)
    for warning in summary.warnings:
        print_warning(warning)


def print_next_steps(package_manager: PackageManager, project_dir: str | None = None) -> None:
    console.print()
    console.print("[bold]Next steps:[/bold]")
    dev_command = format_command(package_manager.run_command("dev"))
    steps = []
    if project_dir:
        steps.append(f"cd {project_dir}")
    steps += [
        "Update tx3/trix.toml with your configuration",
        "Add your TX3 code to tx3/main.tx3",
        f'Run "{dev_command}" to start development with TX3',
    ]
    for number, step in enumerate(steps, start=1):
        console.print(f"  {number}. {step}")


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug)",
        ),
    ] = 0,
) -> None:
    """tx3next - add TX3 capabilities to Next.js projects."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the tx3next version."""
    console.print(f"tx3next {__version__}")


@app.command()
def install(
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show what would be changed without changing anything",
        ),
    ] = False,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Do not ask for confirmation, even if TX3 is already installed",
        ),
    ] = False,
    fresh: Annotated[
        bool,
        typer.Option(
            "--fresh",
            help="Skip Next.js checks for a project that was just generated",
        ),
    ] = False,
    skip_webpack: Annotated[
        bool,
        typer.Option(
            "--skip-webpack",
            help="Do not merge the TX3 webpack configuration into next.config",
        ),
    ] = False,
    skip_toolchain: Annotated[
        bool,
        typer.Option(
            "--skip-toolchain",
            help="Do not install trix or set up the devnet",
        ),
    ] = False,
    status: Annotated[
        bool,
        typer.Option("--status", help="Reserved"),
    ] = False,
    remove: Annotated[
        bool,
        typer.Option("--remove", help="Reserved"),
    ] = False,
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Project directory (defaults to current directory)",
        ),
    ] = None,
) -> None:
    """Install TX3 into an existing Next.js project.

    Installs the TX3 packages, adds path mappings to tsconfig.json, adds the
    TX3 scripts to package.json, merges the webpack configuration and creates
    the tx3/ sources. Every touched file is backed up first and restored if a
    step fails.
    """
    if status or remove:
        flag = "--status" if status else "--remove"
        print_error(f"{flag} is reserved and not supported yet")
        raise typer.Exit(1)

    root = Path.cwd() if path is None else path.resolve()
    options = InstallOptions(
        dry_run=dry_run,
        force=force,
        fresh=fresh,
        skip_webpack=skip_webpack,
        skip_toolchain=skip_toolchain,
    )

    console.print("Checking Next.js project...")
    try:
        pipeline = InstallPipeline(root, options, confirm=confirm)
        summary = pipeline.run()
    except ProjectValidationError as e:
        print_error("Project validation failed:")
        for error in e.result.errors:
            error_console.print(f"  • {error}", markup=False)
        raise typer.Exit(1) from e
    except ConflictError as e:
        print_error(str(e))
        print_error("Re-run with --skip-webpack to install without changing next.config")
        raise typer.Exit(1) from e
    except (ConfigError, InstallError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    if summary.plan is not None and options.dry_run:
        print_plan(summary.plan)
        return

    if summary.cancelled:
        print_warning("Installation cancelled.")
        return

    print_summary(summary)
    print_success("TX3 installation completed successfully!")
    assert summary.plan is not None
    print_next_steps(summary.plan.package_manager)


@app.command()
def init(
    name: Annotated[
        str | None,
        typer.Argument(help="Name of the project directory to create"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Show what would be run without creating anything",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Do not ask for confirmation",
        ),
    ] = False,
    path: Annotated[
        Path | None,
        typer.Option(
            "--path",
            "-p",
            help="Directory to create the project in (defaults to current directory)",
        ),
    ] = None,
) -> None:
    """Create a new Next.js project with shadcn/ui and TX3.

    Runs create-next-app and the shadcn/ui CLI, then installs TX3 into the new
    project. The project directory is removed again if any step fails.
    """
    parent = Path.cwd() if path is None else path.resolve()
    if name is None:
        name = typer.prompt("What is your project name?")

    try:
        pipeline = InitPipeline(parent, name, config=load_installer_config(parent))

        if dry_run:
            commands = pipeline.preview()
            console.print("[yellow]DRY RUN - No changes will be made[/yellow]")
            console.print("[bold]Project creation:[/bold]")
            for command in commands:
                console.print(f"  • Run: {command}", markup=False)
            console.print("[bold]TX3 installation:[/bold]")
            console.print(f"  • Install TX3 into {pipeline.target}", markup=False)
            return

        pipeline.check()
        if not yes and not typer.confirm(
            f"Create new Next.js project '{name}' with shadcn/ui and TX3?", default=True
        ):
            print_warning("Initialization cancelled.")
            return

        summary = pipeline.run()
    except (InitError, ConfigError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_summary(summary)
    print_success(f"Project created successfully in '{name}'!")
    assert summary.plan is not None
    print_next_steps(summary.plan.package_manager, name)


if __name__ == "__main__":
    app()
