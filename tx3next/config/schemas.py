"""Pydantic schemas for tx3next configuration.

This module defines the data model for tx3next.yaml, the optional per-project
file that overrides which packages, scripts and toolchain steps an install
uses. Without the file the defaults below are used.
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator

# =============================================================================
# Common Types
# =============================================================================

PackageManagerKind = Literal["npm", "yarn", "pnpm"]


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_PACKAGES = ["tx3-sdk", "tx3-trp"]
DEFAULT_DEV_PACKAGES = ["glob", "dotenv", "nodemon", "concurrently"]

DEFAULT_SCRIPTS = {
    "tx3:generate": "node scripts/generate-tx3.mjs",
    "watch:tx3": 'nodemon --watch tx3 --ext tx3 --exec "npm run tx3:generate"',
    "dev": 'concurrently "next dev --turbopack" "npm run watch:tx3"',
}

# Added only when the devnet bundle is copied
DEVNET_SCRIPT = ("devnet", "trix devnet --config devnet/devnet.toml")

DEFAULT_TOOLCHAIN_INSTALLER = (
    "curl --proto '=https' --tlsv1.2 -LsSf "
    "https://github.com/tx3-lang/up/releases/latest/download/tx3up-installer.sh | sh"
)

DEFAULT_SCAFFOLD_COMPONENTS = [
    "button",
    "card",
    "badge",
    "alert",
    "separator",
    "label",
    "textarea",
]


# =============================================================================
# Project Configuration (tx3next.yaml)
# =============================================================================


class InstallerConfig(BaseModel):
    """Settings for one tx3next install, read from tx3next.yaml."""

    packages: list[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))
    dev_packages: list[str] = Field(default_factory=lambda: list(DEFAULT_DEV_PACKAGES))
    scripts: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_SCRIPTS))
    install_toolchain: bool = True
    devnet: bool = True
    toolchain_installer: str = DEFAULT_TOOLCHAIN_INSTALLER
    trp_endpoint: str = "http://localhost:8164"
    scaffold_components: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SCAFFOLD_COMPONENTS)
    )

    model_config = {"extra": "forbid"}

    @field_validator("packages", "dev_packages", "scaffold_components")
    @classmethod
    def validate_names(cls, v: list[str]) -> list[str]:
        """Reject blank entries and names that look like command-line flags."""
        for name in v:
            if not name.strip():
                raise ValueError("Package names must not be empty")
            if name.startswith("-"):
                raise ValueError(f"Invalid package name: {name}")
        return v

    @field_validator("scripts")
    @classmethod
    def validate_scripts(cls, v: dict[str, str]) -> dict[str, str]:
        """Script names and commands must be non-empty."""
        for name, command in v.items():
            if not name.strip() or not command.strip():
                raise ValueError(f"Invalid script entry: {name!r}")
        return v
