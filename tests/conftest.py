"""Shared fixtures for tx3next tests."""

import json
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from tx3next.config.schemas import InstallerConfig
from tx3next.core.package_manager import PackageManager

NEXT_CONFIG_TS = """\
import type { NextConfig } from "next";

const nextConfig: NextConfig = {
  /* config options here */
};

export default nextConfig;
"""

PACKAGE_JSON = {
    "name": "my-app",
    "version": "0.1.0",
    "private": True,
    "scripts": {
        "dev": "next dev --turbopack",
        "build": "next build",
        "start": "next start",
        "lint": "next lint",
    },
    "dependencies": {
        "next": "15.3.0",
        "react": "^19.0.0",
        "react-dom": "^19.0.0",
    },
    "devDependencies": {
        "typescript": "^5",
    },
}

TSCONFIG = {
    "compilerOptions": {
        "target": "ES2017",
        "strict": True,
        "paths": {"@/*": ["./*"]},
    },
    "include": ["next-env.d.ts", "**/*.ts", "**/*.tsx"],
    "exclude": ["node_modules"],
}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="tx3next_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def next_project(temp_dir: Path) -> Path:
    """A Next.js project as create-next-app leaves it."""
    project_dir = temp_dir / "my-app"
    project_dir.mkdir()
    (project_dir / "package.json").write_text(json.dumps(PACKAGE_JSON, indent=2) + "\n")
    (project_dir / "tsconfig.json").write_text(json.dumps(TSCONFIG, indent=2) + "\n")
    (project_dir / "next.config.ts").write_text(NEXT_CONFIG_TS)
    (project_dir / "package-lock.json").write_text('{\n  "lockfileVersion": 3\n}\n')
    (project_dir / "app").mkdir()
    (project_dir / "app" / "page.tsx").write_text(
        "export default function Home() {\n  return null;\n}\n"
    )
    return project_dir


@pytest.fixture
def offline_config() -> InstallerConfig:
    """Installer settings without the toolchain and devnet steps."""
    return InstallerConfig(install_toolchain=False, devnet=False)


@pytest.fixture
def fake_installs() -> Generator[list[list[str]], None, None]:
    """Record package manager invocations instead of running them."""
    calls: list[list[str]] = []

    def fake_install(self: PackageManager, packages: list[str], dev: bool = False) -> None:
        if packages:
            calls.append(self.install_command(packages, dev=dev))

    with patch.object(PackageManager, "install_packages", fake_install):
        yield calls


def _snapshot(root: Path) -> dict[str, tuple[bytes | None, int]]:
    state: dict[str, tuple[bytes | None, int]] = {}
    for path in sorted(root.rglob("*")):
        stat = path.stat()
        content = path.read_bytes() if path.is_file() else None
        state[path.relative_to(root).as_posix()] = (content, stat.st_mtime_ns)
    state["."] = (None, root.stat().st_mtime_ns)
    return state


@pytest.fixture
def snapshot() -> Callable[[Path], dict[str, tuple[bytes | None, int]]]:
    """Capture paths, contents and modification times under a directory."""
    return _snapshot
