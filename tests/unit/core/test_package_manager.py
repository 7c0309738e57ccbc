"""Tests for tx3next.core.package_manager module."""

from pathlib import Path
from unittest.mock import patch

import pytest

from tx3next.core.package_manager import PackageManager, detect_package_manager


class TestDetectPackageManager:
    """Tests for detect_package_manager function."""

    @pytest.mark.parametrize(
        ("lockfiles", "expected"),
        [
            ([], "npm"),
            (["package-lock.json"], "npm"),
            (["yarn.lock"], "yarn"),
            (["pnpm-lock.yaml"], "pnpm"),
            (["yarn.lock", "pnpm-lock.yaml"], "pnpm"),
        ],
    )
    def test_detects_from_lockfile(self, temp_dir: Path, lockfiles: list[str], expected: str):
        """The lockfile decides the package manager."""
        for name in lockfiles:
            (temp_dir / name).write_text("")

        assert detect_package_manager(temp_dir) == expected

    def test_detect_classmethod(self, temp_dir: Path):
        """PackageManager.detect binds the root."""
        (temp_dir / "yarn.lock").write_text("")

        manager = PackageManager.detect(temp_dir)

        assert manager.kind == "yarn"
        assert manager.root == temp_dir
        assert manager.lockfile == "yarn.lock"


class TestInstallCommand:
    """Tests for PackageManager.install_command."""

    @pytest.mark.parametrize(
        ("kind", "dev", "expected"),
        [
            ("npm", False, ["npm", "install", "tx3-sdk"]),
            ("npm", True, ["npm", "install", "--save-dev", "tx3-sdk"]),
            ("yarn", False, ["yarn", "add", "tx3-sdk"]),
            ("yarn", True, ["yarn", "add", "--dev", "tx3-sdk"]),
            ("pnpm", False, ["pnpm", "add", "tx3-sdk"]),
            ("pnpm", True, ["pnpm", "add", "--save-dev", "tx3-sdk"]),
        ],
    )
    def test_command_shape(self, temp_dir: Path, kind, dev: bool, expected: list[str]):
        """Each package manager gets its own syntax."""
        assert PackageManager(kind, temp_dir).install_command(["tx3-sdk"], dev=dev) == expected

    def test_run_command(self, temp_dir: Path):
        """Script invocation differs for yarn."""
        assert PackageManager("npm", temp_dir).run_command("dev") == ["npm", "run", "dev"]
        assert PackageManager("yarn", temp_dir).run_command("dev") == ["yarn", "dev"]
        assert PackageManager("pnpm", temp_dir).run_command("dev") == ["pnpm", "run", "dev"]


class TestGetMissingPackages:
    """Tests for PackageManager.get_missing_packages."""

    def test_checks_both_dependency_sections(self, temp_dir: Path):
        """Packages in either section count as present."""
        package_json = {
            "dependencies": {"tx3-sdk": "^0.5.0"},
            "devDependencies": {"glob": "^11"},
        }
        manager = PackageManager("npm", temp_dir)

        missing = manager.get_missing_packages(package_json, ["tx3-sdk", "tx3-trp", "glob"])

        assert missing == ["tx3-trp"]

    def test_preserves_order(self, temp_dir: Path):
        """Missing packages keep the requested order."""
        manager = PackageManager("npm", temp_dir)

        assert manager.get_missing_packages({}, ["b", "a", "c"]) == ["b", "a", "c"]


class TestInstallPackages:
    """Tests for PackageManager.install_packages."""

    def test_runs_in_project_root(self, temp_dir: Path):
        """Installs with the project root as working directory."""
        manager = PackageManager("pnpm", temp_dir)

        with patch("tx3next.core.package_manager.run_command") as mock_run:
            manager.install_packages(["glob", "dotenv"], dev=True)

        mock_run.assert_called_once_with(
            ["pnpm", "add", "--save-dev", "glob", "dotenv"], cwd=temp_dir
        )

    def test_nothing_to_install(self, temp_dir: Path):
        """An empty list runs nothing."""
        with patch("tx3next.core.package_manager.run_command") as mock_run:
            PackageManager("npm", temp_dir).install_packages([])

        mock_run.assert_not_called()
