"""walletkit - shared tooling for coin wallet managers."""

__version__ = "0.21.1"
__logo__ = "🪙"
