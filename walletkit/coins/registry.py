"""Coin registry: one descriptor per supported coin, plus generic accessors."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum


class CoinIdentity(IntEnum):
    """Which coin this tool instance manages. Values match the persisted config."""
    DIVI = 0
    PHORE = 1
    PIVX = 2
    TREZARCOIN = 3

    @classmethod
    def from_name(cls, name: str) -> "CoinIdentity":
        """Look up an identity by member name or coin name, case-insensitively."""
        wanted = name.strip().lower()
        for identity in cls:
            if identity.name.lower() == wanted or COINS[identity].coin_name.lower() == wanted:
                return identity
        raise ValueError(
            f"Unknown coin '{name}'. Supported: {', '.join(c.coin_name for c in COINS.values())}"
        )


class Platform(Enum):
    ARM = "arm"
    LINUX = "linux"
    WINDOWS = "windows"


@dataclass(frozen=True)
class CoinDescriptor:
    """Everything that differs between coins: names, folders and downloads."""
    coin_name: str
    app_name: str

    # Wallet tool binaries
    app_cli_file: str
    app_server_file: str

    # Coin binaries and files
    cli_file: str
    daemon_file: str
    tx_file: str
    conf_file: str

    # Folders
    home_dir: str
    home_dir_win: str
    bin_dir: str
    bin_dir_win: str

    startup_banner: str

    # Coin release downloads
    download_url: str
    download_files: dict[Platform, str] = field(default_factory=dict)

    @property
    def app_cli_name(self) -> str:
        return f"{self.app_name} CLI"

    @property
    def app_server_name(self) -> str:
        return f"{self.app_name} Server"

    @property
    def seed_file(self) -> str:
        return f"unsecure-{self.coin_name.lower()}-seed.txt"


COINS: dict[CoinIdentity, CoinDescriptor] = {
    CoinIdentity.DIVI: CoinDescriptor(
        coin_name="Divi",
        app_name="GoDivi",
        app_cli_file="godivi",
        app_server_file="godivis",
        cli_file="divi-cli",
        daemon_file="divid",
        tx_file="divi-tx",
        conf_file="divi.conf",
        home_dir=".divi",
        home_dir_win="DIVI",
        bin_dir="godivi",
        bin_dir_win="GoDivi",
        startup_banner="DIVI server starting",
        download_url="https://github.com/DiviProject/Divi/releases/download/v1.0.8/",
        download_files={
            Platform.ARM: "divi-1.0.8-RPi2.tar.gz",
            Platform.LINUX: "divi-1.0.8-x86_64-linux-gnu.tar.gz",
            Platform.WINDOWS: "divi-1.0.8-win64.zip",
        },
    ),
    CoinIdentity.PHORE: CoinDescriptor(
        coin_name="Phore",
        app_name="BoxPhore",
        app_cli_file="boxphore",
        app_server_file="boxphores",
        cli_file="phore-cli",
        daemon_file="phored",
        tx_file="phore-tx",
        conf_file="phore.conf",
        home_dir=".phore",
        home_dir_win="PHORE",
        bin_dir="boxphore",
        bin_dir_win="BoxPhore",
        startup_banner="Phore server starting",
        download_url="https://github.com/phoreproject/Phore/releases/download/v1.6.5/",
        download_files={
            Platform.ARM: "phore-1.6.5-arm-linux-gnueabihf.tar.gz",
            Platform.LINUX: "phore-1.6.5-x86_64-linux-gnu.tar.gz",
            Platform.WINDOWS: "phore-1.6.5-win64.zip",
        },
    ),
    CoinIdentity.PIVX: CoinDescriptor(
        coin_name="PIVX",
        app_name="GoPIVX",
        app_cli_file="gopivx",
        app_server_file="gopivxs",
        cli_file="pivx-cli",
        daemon_file="pivxd",
        tx_file="pivx-tx",
        conf_file="pivx.conf",
        home_dir=".pivx",
        home_dir_win="PIVX",
        bin_dir="gopivx",
        bin_dir_win="GoPIVX",
        startup_banner="PIVX server starting",
        download_url="https://github.com/PIVX-Project/PIVX/releases/download/v4.0.0/",
        download_files={
            Platform.ARM: "pivx-4.0.0-arm-linux-gnueabihf.tar.gz",
            Platform.LINUX: "pivx-4.0.0-x86_64-linux-gnu.tar.gz",
            Platform.WINDOWS: "pivx-4.0.0-win64.zip",
        },
    ),
    CoinIdentity.TREZARCOIN: CoinDescriptor(
        coin_name="Trezarcoin",
        app_name="GoTrezarcoin",
        app_cli_file="gotrezarcoin",
        app_server_file="gotrezarcoins",
        cli_file="trezarcoin-cli",
        daemon_file="trezarcoind",
        tx_file="trezarcoin-tx",
        conf_file="trezarcoin.conf",
        home_dir=".trezarcoin",
        home_dir_win="TREZARCOIN",
        bin_dir="gotrezarcoin",
        bin_dir_win="GoTrezarcoin",
        startup_banner="Trezarcoin server starting",
        download_url="https://github.com/TrezarCoin/TrezarCoin/releases/download/2.0.1.0/",
        download_files={
            Platform.ARM: "trezarcoin-2.0.1-rPI.zip",
            Platform.LINUX: "trezarcoin-2.0.1-linux64.tar.gz",
            Platform.WINDOWS: "trezarcoin-2.0.1-win64-setup.exe",
        },
    ),
}


def get_coin(identity: CoinIdentity) -> CoinDescriptor:
    """Return the descriptor for *identity*."""
    return COINS[CoinIdentity(identity)]


def executable_name(name: str, platform: Platform) -> str:
    """Append the .exe suffix on Windows."""
    return f"{name}.exe" if platform == Platform.WINDOWS else name


def daemon_binary_name(identity: CoinIdentity, platform: Platform) -> str:
    """Name of the coin daemon binary, e.g. ``divid`` or ``divid.exe``."""
    return executable_name(get_coin(identity).daemon_file, platform)


def cli_binary_name(identity: CoinIdentity, platform: Platform) -> str:
    """Name of the coin CLI binary, e.g. ``divi-cli``."""
    return executable_name(get_coin(identity).cli_file, platform)


def tx_binary_name(identity: CoinIdentity, platform: Platform) -> str:
    return executable_name(get_coin(identity).tx_file, platform)


def app_cli_binary_name(identity: CoinIdentity, platform: Platform) -> str:
    return executable_name(get_coin(identity).app_cli_file, platform)


def app_server_binary_name(identity: CoinIdentity, platform: Platform) -> str:
    return executable_name(get_coin(identity).app_server_file, platform)


def coin_download_link(identity: CoinIdentity, platform: Platform) -> tuple[str, str]:
    """Return (base_url, file_name) for the coin's release archive."""
    coin = get_coin(identity)
    return coin.download_url, coin.download_files[platform]
