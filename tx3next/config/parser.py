"""Configuration file parsing utilities."""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from tx3next.config.schemas import InstallerConfig

CONFIG_FILE = "tx3next.yaml"


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


class ParseError(ConfigError):
    """A JSON document or config source could not be parsed."""


def parse_json_object(text: str, path: Path | None = None) -> dict[str, Any]:
    """Parse JSON text that must contain an object.

    Args:
        text: JSON source
        path: File the text came from, for error messages

    Returns:
        Parsed JSON object

    Raises:
        ParseError: If the text is not valid JSON or not an object
    """
    name = path.name if path else "JSON document"
    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse {name}: {e}", path) from e
    if not isinstance(result, dict):
        raise ParseError(f"{name} must contain a JSON object", path)
    return result


def dump_json(data: dict[str, Any], indent: int = 2) -> str:
    """Serialize data the way npm and tsc write their JSON files."""
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def load_json(path: Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON as a dictionary

    Raises:
        ConfigError: If the file cannot be read
        ParseError: If the file cannot be parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e
    return parse_json_object(text, path)


def save_json(path: Path, data: dict[str, Any], indent: int = 2) -> None:
    """Save data to a JSON file.

    Args:
        path: Path to write to
        data: Data to serialize
        indent: JSON indentation level
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_json(data, indent), encoding="utf-8")


def load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML as a dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8") as f:
            result = yaml.safe_load(f)
            if result is None:
                return {}
            if not isinstance(result, dict):
                raise ConfigError(f"YAML file must contain a mapping: {path}", path)
            return result
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e


def load_installer_config(project_root: Path) -> InstallerConfig:
    """Load installer settings from tx3next.yaml, falling back to defaults.

    Args:
        project_root: Path to the project root directory

    Returns:
        Parsed InstallerConfig

    Raises:
        ConfigError: If the file exists but is invalid
    """
    config_path = project_root / CONFIG_FILE
    if not config_path.exists():
        return InstallerConfig()

    data = load_yaml(config_path)

    try:
        return InstallerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid {CONFIG_FILE}: {e}", config_path) from e
