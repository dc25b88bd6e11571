"""Wallet queries and models."""

from walletkit.wallet.models import (
    BlockchainInfo,
    MNSyncStatus,
    StakingStatus,
    WalletInfo,
    WalletSecurityStatus,
)
from walletkit.wallet.rpc import WalletClient, WalletError

__all__ = [
    "BlockchainInfo",
    "MNSyncStatus",
    "StakingStatus",
    "WalletClient",
    "WalletError",
    "WalletInfo",
    "WalletSecurityStatus",
]
