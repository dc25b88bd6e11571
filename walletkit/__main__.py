"""Entry point for `python -m walletkit`."""

from walletkit.cli.commands import app

if __name__ == "__main__":
    app()
