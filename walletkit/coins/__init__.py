"""Per-coin constants and lookups."""

from walletkit.coins.registry import (
    COINS,
    CoinDescriptor,
    CoinIdentity,
    Platform,
    cli_binary_name,
    coin_download_link,
    daemon_binary_name,
    get_coin,
)

__all__ = [
    "COINS",
    "CoinDescriptor",
    "CoinIdentity",
    "Platform",
    "cli_binary_name",
    "coin_download_link",
    "daemon_binary_name",
    "get_coin",
]
