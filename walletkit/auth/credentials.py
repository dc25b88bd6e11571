"""Credentials schema and persistence (separate from config)."""

import json
import os
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field


class RPCCredentials(BaseModel):
    """RPC login the coin daemon generated on first run."""
    rpc_user: str = ""
    rpc_password: str = ""


class Credentials(BaseModel):
    """Root credentials model. Stored in ~/.walletkit/credentials.json with 0o600."""
    rpc: RPCCredentials = Field(default_factory=RPCCredentials)


def get_credentials_path() -> Path:
    """Get the default credentials file path."""
    return Path.home() / ".walletkit" / "credentials.json"


def load_credentials(creds_path: Path | None = None) -> Credentials:
    """Load credentials from file or return defaults."""
    from walletkit.config.loader import convert_keys

    path = creds_path or get_credentials_path()

    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
            return Credentials.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load credentials from {path}: {e}. Using defaults.")

    return Credentials()


def save_credentials(creds: Credentials, creds_path: Path | None = None) -> None:
    """Save credentials to file with 0o600 permissions."""
    from walletkit.config.loader import convert_to_camel

    path = creds_path or get_credentials_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(creds.model_dump())

    with open(path, "w") as f:
        json.dump(data, f, indent=2)

    os.chmod(path, 0o600)
