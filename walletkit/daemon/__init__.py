"""Daemon management: factory and re-exports."""

from walletkit.daemon.base import (
    CommandExecutionError,
    CommandRejectedError,
    CommandResult,
    CommandRetryExhaustedError,
    DaemonError,
    DaemonInfo,
    DaemonState,
    InvalidTransitionError,
    ProcessEnumerationError,
    ProcessHandle,
    StartupBannerMismatchError,
    StopTimedOutError,
)
from walletkit.daemon.controller import DaemonController
from walletkit.daemon.resolve import UnsupportedPlatformError, detect_platform
from walletkit.daemon.retry import run_cli_command

__all__ = [
    "CommandExecutionError",
    "CommandRejectedError",
    "CommandResult",
    "CommandRetryExhaustedError",
    "DaemonController",
    "DaemonError",
    "DaemonInfo",
    "DaemonState",
    "InvalidTransitionError",
    "ProcessEnumerationError",
    "ProcessHandle",
    "StartupBannerMismatchError",
    "StopTimedOutError",
    "UnsupportedPlatformError",
    "get_controller",
    "run_cli_command",
]


def get_controller(config=None) -> DaemonController:
    """Return a DaemonController for the coin named in the persisted config."""
    if config is None:
        from walletkit.config.loader import load_config
        config = load_config()
    return DaemonController(config.project_type, platform=detect_platform())
