"""Tests for tx3next.core.init module."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from tx3next.config.schemas import InstallerConfig
from tx3next.core.init import InitError, InitPipeline, Scaffolder, validate_project_name
from tx3next.utils.process import CommandError


class FakeScaffolder(Scaffolder):
    """Writes a minimal create-next-app result instead of running npx."""

    def __init__(self, fail_with: Exception | None = None, create_dir: bool = True):
        super().__init__()
        self.fail_with = fail_with
        self.create_dir = create_dir
        self.calls: list[tuple[Path, str]] = []

    def create(self, parent_dir: Path, name: str) -> None:
        self.calls.append((parent_dir, name))
        if not self.create_dir:
            return
        root = parent_dir / name
        root.mkdir()
        (root / "package.json").write_text(
            json.dumps({"name": name, "dependencies": {"next": "15.3.0"}})
        )
        (root / "tsconfig.json").write_text('{"compilerOptions": {}}')
        if self.fail_with is not None:
            raise self.fail_with


@pytest.fixture
def offline_init_config() -> InstallerConfig:
    return InstallerConfig(install_toolchain=False, devnet=False)


class TestValidateProjectName:
    """Tests for validate_project_name function."""

    @pytest.mark.parametrize("name", ["my-app", "App_2", "tx3"])
    def test_valid(self, name: str):
        """Letters, digits, hyphens and underscores are allowed."""
        validate_project_name(name)

    @pytest.mark.parametrize("name", ["", "  ", "my app", "../app", "app!"])
    def test_invalid(self, name: str):
        """Anything else is rejected."""
        with pytest.raises(InitError):
            validate_project_name(name)


class TestScaffolder:
    """Tests for Scaffolder class."""

    def test_commands(self, temp_dir: Path):
        """create-next-app runs in the parent, shadcn in the project."""
        commands = Scaffolder(["button", "card"]).commands(temp_dir, "my-app")

        (next_cmd, next_cwd), (shadcn_cmd, shadcn_cwd) = commands
        assert next_cmd[:3] == ["npx", "create-next-app@latest", "my-app"]
        assert "--typescript" in next_cmd
        assert "--yes" in next_cmd
        assert next_cwd == temp_dir
        assert shadcn_cmd == ["npx", "shadcn@latest", "init", "-y", "button", "card"]
        assert shadcn_cwd == temp_dir / "my-app"

    def test_create_streams_output(self, temp_dir: Path):
        """Generators run without capturing output."""
        with patch("tx3next.core.init.run_command") as mock_run:
            Scaffolder().create(temp_dir, "my-app")

        assert mock_run.call_count == 2
        assert all(call.kwargs["capture"] is False for call in mock_run.call_args_list)


class TestInitPipeline:
    """Tests for InitPipeline class."""

    def test_creates_and_installs(self, temp_dir, offline_init_config, fake_installs):
        """Scaffolds the project and installs TX3 without prompting."""
        scaffolder = FakeScaffolder()
        pipeline = InitPipeline(temp_dir, "my-app", scaffolder, offline_init_config)

        summary = pipeline.run()

        target = temp_dir.resolve() / "my-app"
        assert summary.completed
        assert scaffolder.calls == [(temp_dir.resolve(), "my-app")]
        assert (target / "tx3" / "main.tx3").exists()
        assert (target / "next.config.ts").exists()
        assert fake_installs[0] == ["npm", "install", "tx3-sdk", "tx3-trp"]

    def test_existing_directory(self, temp_dir, offline_init_config):
        """An existing target is never touched."""
        (temp_dir / "my-app").mkdir()
        (temp_dir / "my-app" / "keep.txt").write_text("keep")
        scaffolder = FakeScaffolder()

        with pytest.raises(InitError, match="Directory 'my-app' already exists"):
            InitPipeline(temp_dir, "my-app", scaffolder, offline_init_config).run()

        assert scaffolder.calls == []
        assert (temp_dir / "my-app" / "keep.txt").read_text() == "keep"

    def test_invalid_name(self, temp_dir, offline_init_config):
        """Invalid names fail before scaffolding."""
        scaffolder = FakeScaffolder()

        with pytest.raises(InitError, match="Project name can only contain"):
            InitPipeline(temp_dir, "my app", scaffolder, offline_init_config).run()

        assert scaffolder.calls == []

    def test_scaffold_failure_cleans_up(self, temp_dir, offline_init_config):
        """A failing generator removes the partial project."""
        scaffolder = FakeScaffolder(fail_with=CommandError("npx is not installed or not in PATH"))

        with pytest.raises(InitError, match="npx is not installed") as exc_info:
            InitPipeline(temp_dir, "my-app", scaffolder, offline_init_config).run()

        assert exc_info.value.cleanup_error is None
        assert not (temp_dir / "my-app").exists()

    def test_missing_target_after_scaffold(self, temp_dir, offline_init_config):
        """A generator that creates nothing is an error."""
        scaffolder = FakeScaffolder(create_dir=False)

        with pytest.raises(InitError, match="was not created"):
            InitPipeline(temp_dir, "my-app", scaffolder, offline_init_config).run()

    def test_install_failure_cleans_up(self, temp_dir, offline_init_config):
        """A failing TX3 install removes the new project."""
        with patch(
            "tx3next.core.package_manager.run_command",
            side_effect=CommandError("npm is not installed or not in PATH"),
        ):
            with pytest.raises(InitError, match="Install TX3 packages failed"):
                InitPipeline(temp_dir, "my-app", FakeScaffolder(), offline_init_config).run()

        assert not (temp_dir / "my-app").exists()

    def test_cleanup_failure_reported(self, temp_dir, offline_init_config):
        """A failed cleanup is attached to the error."""
        scaffolder = FakeScaffolder(fail_with=CommandError("boom"))

        with patch("tx3next.core.init.remove_directory", side_effect=OSError("busy")):
            with pytest.raises(InitError, match="Cleanup also failed: busy") as exc_info:
                InitPipeline(temp_dir, "my-app", scaffolder, offline_init_config).run()

        assert isinstance(exc_info.value.cleanup_error, OSError)

    def test_preview(self, temp_dir, offline_init_config):
        """preview lists the generator commands without running them."""
        pipeline = InitPipeline(temp_dir, "my-app", config=offline_init_config)

        with patch("tx3next.core.init.run_command") as mock_run:
            commands = pipeline.preview()

        mock_run.assert_not_called()
        assert commands[0].startswith("npx create-next-app@latest my-app --app")
        assert commands[1].startswith("npx shadcn@latest init -y button card")
        assert not (temp_dir / "my-app").exists()

    def test_missing_parent(self, temp_dir, offline_init_config):
        """The parent directory must exist."""
        with pytest.raises(InitError, match="Directory does not exist"):
            InitPipeline(temp_dir / "missing", "my-app", config=offline_init_config).check()
