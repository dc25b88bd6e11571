"""Install coin binaries and prepare the coin's first run."""

import shutil
import tempfile
from pathlib import Path

import httpx
from loguru import logger
from rich.console import Console

from walletkit.auth.credentials import RPCCredentials, load_credentials, save_credentials
from walletkit.coins.registry import (
    CoinIdentity,
    Platform,
    cli_binary_name,
    coin_download_link,
    daemon_binary_name,
    get_coin,
    tx_binary_name,
)
from walletkit.daemon.process import ProcessRunner
from walletkit.daemon.resolve import detect_platform, get_apps_bin_folder, get_coin_home_folder
from walletkit.install.archive import extract_archive, find_member, is_archive
from walletkit.install.download import InstallError, download_file

BINARY_MODE = 0o777
RPC_USER_PREFIX = "rpcuser="
RPC_PASSWORD_PREFIX = "rpcpassword="


def coin_binaries(identity: CoinIdentity, platform: Platform) -> list[str]:
    """The cli, daemon and tx binary names copied out of a release."""
    return [
        cli_binary_name(identity, platform),
        daemon_binary_name(identity, platform),
        tx_binary_name(identity, platform),
    ]


def is_installed(
    identity: CoinIdentity,
    platform: Platform | None = None,
    bin_folder: Path | None = None,
) -> bool:
    """True when the coin CLI and daemon are present in the bin folder."""
    platform = platform or detect_platform()
    bin_folder = bin_folder or get_apps_bin_folder(identity, platform)
    return all(
        (bin_folder / name).is_file()
        for name in (cli_binary_name(identity, platform), daemon_binary_name(identity, platform))
    )


def install_coin_binaries(
    identity: CoinIdentity,
    platform: Platform | None = None,
    bin_folder: Path | None = None,
    client: httpx.Client | None = None,
    console: Console | None = None,
    show_progress: bool = True,
) -> list[Path]:
    """Download the coin release and copy its binaries into the bin folder.

    The temporary extraction tree and the downloaded archive are removed
    whether or not the install succeeds.

    Returns:
        Paths of the installed binaries.

    Raises:
        InstallError: Download, extraction or copy failed, or the release is
            an installer executable the user has to run themselves.
    """
    platform = platform or detect_platform()
    bin_folder = bin_folder or get_apps_bin_folder(identity, platform)
    bin_folder.mkdir(parents=True, exist_ok=True)

    base_url, file_name = coin_download_link(identity, platform)
    archive_path = bin_folder / file_name
    download_file(base_url + file_name, archive_path, client=client, console=console,
                  show_progress=show_progress)

    if not is_archive(archive_path):
        raise InstallError(
            f"{get_coin(identity).coin_name} ships an installer for this platform. "
            f"Run {archive_path} to finish the install."
        )

    extract_dir = Path(tempfile.mkdtemp(prefix="extract-", dir=bin_folder))
    installed: list[Path] = []
    try:
        extract_archive(archive_path, extract_dir)
        for name in coin_binaries(identity, platform):
            source = find_member(extract_dir, name)
            if source is None:
                raise InstallError(f"{name} not found in {file_name}")
            target = bin_folder / name
            try:
                shutil.copyfile(source, target)
                target.chmod(BINARY_MODE)
            except OSError as e:
                raise InstallError(f"Unable to install {name}: {e}") from e
            logger.info(f"Installed {target}")
            installed.append(target)
    finally:
        shutil.rmtree(extract_dir, ignore_errors=True)
        archive_path.unlink(missing_ok=True)

    return installed


def parse_rpc_credentials(output: str) -> RPCCredentials | None:
    """Pick ``rpcuser=`` / ``rpcpassword=`` out of the daemon's first-run message."""
    user = password = ""
    for line in output.splitlines():
        line = line.strip()
        if line.startswith(RPC_USER_PREFIX):
            user = line[len(RPC_USER_PREFIX):].strip()
        elif line.startswith(RPC_PASSWORD_PREFIX):
            password = line[len(RPC_PASSWORD_PREFIX):].strip()
    if not user or not password:
        return None
    return RPCCredentials(rpc_user=user, rpc_password=password)


def render_coin_conf(creds: RPCCredentials) -> str:
    return f"rpcuser={creds.rpc_user}\nrpcpassword={creds.rpc_password}\n\ndaemon=1\n\n"


def run_initial_daemon(
    identity: CoinIdentity,
    platform: Platform | None = None,
    runner: ProcessRunner | None = None,
    bin_folder: Path | None = None,
    home_folder: Path | None = None,
    creds_path: Path | None = None,
) -> RPCCredentials:
    """Run the daemon once so it generates RPC credentials, then write its conf file.

    Without a conf file the daemon prints a suggested ``rpcuser`` and
    ``rpcpassword`` and exits. Those are written to the conf file (with
    ``daemon=1``) and stored in the credentials file. When the conf file
    already exists the daemon is not run and its credentials are returned.
    """
    platform = platform or detect_platform()
    runner = runner or ProcessRunner()
    bin_folder = bin_folder or get_apps_bin_folder(identity, platform)
    home_folder = home_folder or get_coin_home_folder(identity, platform)
    conf_path = home_folder / get_coin(identity).conf_file

    if conf_path.exists():
        logger.info(f"{conf_path} already exists, skipping initial daemon run")
        existing = parse_rpc_credentials(conf_path.read_text())
        if existing is None:
            raise InstallError(f"{conf_path} has no rpcuser/rpcpassword")
        return existing

    result = runner.run([str(bin_folder / daemon_binary_name(identity, platform))])
    creds = parse_rpc_credentials(result.output)
    if creds is None:
        raise InstallError(
            f"{daemon_binary_name(identity, platform)} did not report RPC credentials: "
            f"{result.output.strip()}"
        )

    home_folder.mkdir(parents=True, exist_ok=True)
    conf_path.write_text(render_coin_conf(creds))
    conf_path.chmod(0o600)
    logger.info(f"Wrote {conf_path}")

    stored = load_credentials(creds_path)
    stored.rpc = creds
    save_credentials(stored, creds_path)
    return creds


def add_bin_folder_to_path(
    identity: CoinIdentity,
    platform: Platform | None = None,
    profile: Path | None = None,
    bin_folder: Path | None = None,
) -> bool:
    """Append the bin folder to PATH in ~/.profile. Returns True if the file changed."""
    platform = platform or detect_platform()
    if platform == Platform.WINDOWS:
        return False

    profile = profile or Path.home() / ".profile"
    bin_folder = bin_folder or get_apps_bin_folder(identity, platform)
    export_line = f"export PATH=$PATH:{bin_folder}"

    existing = profile.read_text() if profile.exists() else ""
    if export_line in existing.splitlines():
        return False

    with open(profile, "a") as f:
        if existing and not existing.endswith("\n"):
            f.write("\n")
        f.write(export_line + "\n")
    logger.info(f"Added {bin_folder} to PATH in {profile}")
    return True
