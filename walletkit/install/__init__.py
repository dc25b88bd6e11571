"""Coin binary download, extraction and first-run setup."""

from walletkit.install.archive import extract_archive
from walletkit.install.download import InstallError, download_file
from walletkit.install.installer import (
    add_bin_folder_to_path,
    install_coin_binaries,
    is_installed,
    run_initial_daemon,
)

__all__ = [
    "InstallError",
    "add_bin_folder_to_path",
    "download_file",
    "extract_archive",
    "install_coin_binaries",
    "is_installed",
    "run_initial_daemon",
]
