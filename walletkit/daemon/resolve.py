"""Platform detection and binary/folder resolution."""

import platform as _platform
import sys
from pathlib import Path

from walletkit.coins.registry import (
    CoinIdentity,
    Platform,
    get_coin,
)
from walletkit.daemon.base import DaemonError


class UnsupportedPlatformError(DaemonError):
    """Raised on platforms the coin projects ship no binaries for (e.g. macOS)."""


def detect_platform() -> Platform:
    """Return Platform.WINDOWS, Platform.ARM or Platform.LINUX."""
    if sys.platform.startswith("win"):
        return Platform.WINDOWS
    if sys.platform.startswith("linux"):
        if _platform.machine().lower().startswith(("arm", "aarch")):
            return Platform.ARM
        return Platform.LINUX
    raise UnsupportedPlatformError(
        f"Coin binaries are not available for {sys.platform}. "
        "Supported: Linux (x86_64, ARM) and Windows."
    )


def _roaming(home: Path) -> Path:
    return home / "appdata" / "roaming"


def get_apps_bin_folder(identity: CoinIdentity, platform: Platform | None = None) -> Path:
    """Folder holding the coin and wallet tool binaries, e.g. ~/godivi/."""
    platform = platform or detect_platform()
    coin = get_coin(identity)
    if platform == Platform.WINDOWS:
        return _roaming(Path.home()) / coin.bin_dir_win
    return Path.home() / coin.bin_dir


def get_coin_home_folder(identity: CoinIdentity, platform: Platform | None = None) -> Path:
    """The coin's own data folder, e.g. ~/.divi/."""
    platform = platform or detect_platform()
    coin = get_coin(identity)
    if platform == Platform.WINDOWS:
        return _roaming(Path.home()) / coin.home_dir_win
    return Path.home() / coin.home_dir

