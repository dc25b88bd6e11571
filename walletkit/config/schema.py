"""Configuration schema using Pydantic."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from walletkit.coins.registry import CoinIdentity, get_coin


class CLIConfig(BaseSettings):
    """Settings for the wallet CLI, persisted next to the binary."""
    app_name: str = ""
    project_type: CoinIdentity = CoinIdentity.DIVI
    server_ip: str = "127.0.0.1"
    port: str = "4000"
    user_confirmed_seed_recovery: bool = False
    token: str = ""  # Auth token shared with the wallet server

    model_config = SettingsConfigDict(
        env_prefix="WALLETKIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("project_type", mode="before")
    @classmethod
    def _coerce_project_type(cls, value):
        # Accept "divi"/"PIVX" as well as the stored integer
        if isinstance(value, str) and not value.strip().isdigit():
            return CoinIdentity.from_name(value)
        if isinstance(value, str):
            return int(value)
        return value

    @property
    def coin_name(self) -> str:
        return get_coin(self.project_type).coin_name

    @property
    def server_address(self) -> str:
        return f"{self.server_ip}:{self.port}"


class ServerConfig(CLIConfig):
    """Settings for the wallet server. Same fields as the CLI config."""


def new_config(identity: CoinIdentity, cls: type[CLIConfig] = CLIConfig) -> CLIConfig:
    """Build a default config for *identity*."""
    return cls.model_validate({
        "app_name": get_coin(identity).app_name,
        "project_type": identity,
    })
