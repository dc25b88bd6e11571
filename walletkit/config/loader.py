"""Configuration loading and saving (YAML or JSON, chosen by file suffix)."""

import json
import re
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from walletkit.coins.registry import CoinIdentity
from walletkit.config.schema import CLIConfig, new_config

CLI_CONFIG_FILE = "cli.yaml"
LEGACY_CLI_CONFIG_FILE = "cli-config.json"
SERVER_CONFIG_FILE = "server-config.json"


class ConfigError(Exception):
    """Raised when a config file is missing or cannot be parsed."""


def get_running_dir() -> Path:
    """Directory the tool runs from; config files live here."""
    return Path.cwd()


def get_config_path() -> Path:
    """Get the CLI config path, falling back to the legacy JSON file if present."""
    running_dir = get_running_dir()
    path = running_dir / CLI_CONFIG_FILE
    legacy = running_dir / LEGACY_CLI_CONFIG_FILE
    if not path.exists() and legacy.exists():
        return legacy
    return path


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    first, *rest = name.split("_")
    return first + "".join(word.capitalize() for word in rest)


def convert_keys(data: Any) -> Any:
    """Recursively convert dict keys to snake_case."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Recursively convert dict keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in (".yaml", ".yml")


def _read_raw(path: Path) -> dict:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) if _is_yaml(path) else json.load(f)
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} does not contain a mapping")
    return data


def _write_raw(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if _is_yaml(path):
            yaml.safe_dump(data, f, sort_keys=False)
        else:
            json.dump(data, f, indent=2)


def load_config(
    config_path: Path | None = None,
    refresh_fields: bool = False,
    cls: type[CLIConfig] = CLIConfig,
) -> CLIConfig:
    """Load a config file.

    Args:
        config_path: File to read. Defaults to get_config_path().
        refresh_fields: Write the file back so fields added since it was
            created show up with their defaults.
        cls: Model to validate against (CLIConfig or ServerConfig).

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    path = config_path or get_config_path()

    if not path.exists():
        raise ConfigError(f"Config file not found: {path}. Run 'walletkit config init' first.")

    try:
        raw = _read_raw(path)
        config = cls.model_validate(convert_keys(raw))
    except (json.JSONDecodeError, yaml.YAMLError, ValidationError, ValueError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    logger.debug(f"Loaded config from {path} ({config.coin_name})")

    if refresh_fields:
        save_config(config, path)

    return config


def save_config(config: CLIConfig, config_path: Path | None = None) -> None:
    """Save a config file with camelCase keys."""
    path = config_path or get_config_path()
    data = convert_to_camel(config.model_dump(mode="json"))
    _write_raw(path, data)


def create_default_config(
    config_dir: Path,
    identity: CoinIdentity,
    file_name: str = CLI_CONFIG_FILE,
    cls: type[CLIConfig] = CLIConfig,
) -> Path:
    """Write a default config for *identity* into *config_dir* and return its path."""
    path = config_dir / file_name
    logger.info(f"Creating default config file {path}")
    save_config(new_config(identity, cls), path)
    return path
