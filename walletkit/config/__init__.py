"""Configuration module for walletkit."""

from walletkit.config.loader import ConfigError, get_config_path, load_config, save_config
from walletkit.config.schema import CLIConfig, ServerConfig, new_config

__all__ = [
    "CLIConfig",
    "ConfigError",
    "ServerConfig",
    "get_config_path",
    "load_config",
    "new_config",
    "save_config",
]
