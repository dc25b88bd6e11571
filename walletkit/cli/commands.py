"""CLI commands for walletkit."""

import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from walletkit import __logo__, __version__

app = typer.Typer(
    name="walletkit",
    help=f"{__logo__} walletkit - coin daemon and wallet manager",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} walletkit v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
):
    """walletkit - coin daemon and wallet manager."""
    configure_logging(verbose)


def _load_config():
    from walletkit.config.loader import ConfigError, load_config

    try:
        return load_config()
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _get_controller(config):
    from walletkit.daemon import UnsupportedPlatformError, get_controller

    try:
        return get_controller(config)
    except UnsupportedPlatformError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _wallet_client(config):
    from walletkit.wallet import WalletClient

    return WalletClient(_get_controller(config))


# ============================================================================
# Daemon Commands
# ============================================================================


@app.command()
def start():
    """Start the coin daemon (no-op if it is already running)."""
    from walletkit.daemon import DaemonError

    config = _load_config()
    controller = _get_controller(config)

    try:
        running, pid = controller.is_running()
        if running:
            console.print(f"[green]{controller.binary_name} is already running[/green] (PID {pid})")
            return

        controller.start(display_progress=True)
        console.print(f"[green]{controller.binary_name} started[/green]")
    except DaemonError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def stop():
    """Stop the coin daemon and wait for it to exit."""
    from walletkit.daemon import DaemonError

    config = _load_config()
    controller = _get_controller(config)

    try:
        running, _ = controller.is_running()
        if not running:
            console.print(f"[yellow]{controller.binary_name} is not running[/yellow]")
            return

        controller.stop()
        console.print(f"[green]{controller.binary_name} stopped[/green]")
    except DaemonError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def status():
    """Show daemon and install status."""
    from walletkit.config.loader import get_config_path
    from walletkit.daemon import DaemonError, DaemonState
    from walletkit.daemon.controller import is_app_cli_running, is_app_server_running
    from walletkit.install import is_installed

    config_path = get_config_path()
    config = _load_config()
    controller = _get_controller(config)

    try:
        info = controller.status()
    except DaemonError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    installed = is_installed(config.project_type, controller.platform, controller.bin_folder)
    state_styles = {
        DaemonState.READY: "[green]running[/green]",
        DaemonState.NOT_RUNNING: "[yellow]stopped[/yellow]",
    }

    console.print(f"{__logo__} {config.app_name or info.coin_name} Status\n")
    console.print(f"Config:    {config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}")
    console.print(f"Coin:      {info.coin_name}")
    console.print(f"Binaries:  {controller.bin_folder} {'[green]✓[/green]' if installed else '[red]✗[/red]'}")
    console.print(f"Daemon:    {info.binary_name} {state_styles.get(info.state, info.state.value)}")
    if info.pid:
        console.print(f"PID:       {info.pid}")

    args = (config.project_type, controller.platform, controller.runner)
    for label, name, handle in (
        ("CLI:", controller.coin.app_cli_name, is_app_cli_running(*args)),
        ("Server:", controller.coin.app_server_name, is_app_server_running(*args)),
    ):
        state = f"[green]running[/green] (PID {handle.pid})" if handle else "[dim]stopped[/dim]"
        console.print(f"{label:<10} {name} {state}")


# ============================================================================
# Wallet Commands
# ============================================================================


@app.command()
def info():
    """Show blockchain sync, balance and staking status."""
    from walletkit.daemon import DaemonError
    from walletkit.daemon.progress import convert_bc_verification
    from walletkit.wallet import WalletError

    config = _load_config()
    client = _wallet_client(config)

    try:
        chain = client.get_blockchain_info()
        wallet = client.get_wallet_info()
        staking = client.get_staking_status()
    except (DaemonError, WalletError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{config.coin_name} wallet")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Blocks", str(chain.blocks))
    table.add_row("Sync", f"{convert_bc_verification(chain.verificationprogress)}%")
    table.add_row("Balance", f"{wallet.balance:.8f}")
    table.add_row("Unconfirmed", f"{wallet.unconfirmed_balance:.8f}")
    table.add_row("Immature", f"{wallet.immature_balance:.8f}")
    table.add_row("Wallet", wallet.encryption_status or "unknown")
    table.add_row(
        "Staking",
        "[green]active[/green]" if staking.staking_status else "[yellow]inactive[/yellow]",
    )

    console.print(table)

    if not wallet.is_encrypted:
        console.print("[yellow]Wallet is unencrypted. Run: walletkit encrypt[/yellow]")


@app.command()
def address():
    """Show the wallet's receive addresses."""
    from walletkit.daemon import DaemonError
    from walletkit.wallet import WalletError

    config = _load_config()
    client = _wallet_client(config)

    try:
        addresses = client.get_addresses()
    except (DaemonError, WalletError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not addresses:
        console.print("[yellow]No addresses found[/yellow]")
        return
    for addr in addresses:
        console.print(addr)


@app.command()
def encrypt():
    """Encrypt the wallet with a new password."""
    from walletkit.cli.prompts import ask_encrypt_wallet, ask_encryption_password
    from walletkit.daemon import DaemonError
    from walletkit.wallet import WalletError

    config = _load_config()
    client = _wallet_client(config)

    try:
        if client.get_wallet_info().is_encrypted:
            console.print("[green]Wallet is already encrypted[/green]")
            return

        if not ask_encrypt_wallet(console):
            return

        password = ask_encryption_password(console)
        if password is None:
            console.print("[red]Error: Passwords did not match[/red]")
            raise typer.Exit(1)

        if client.encrypt_wallet(password):
            console.print(
                f"[green]Wallet encrypted.[/green] {client.controller.binary_name} "
                "shuts down after encrypting; run: walletkit start"
            )
        else:
            console.print("[yellow]The wallet did not confirm encryption[/yellow]")
    except (DaemonError, WalletError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def unlock(
    staking: bool = typer.Option(False, "--staking", "-s", help="Unlock for staking only"),
):
    """Unlock the wallet."""
    from walletkit.cli.prompts import ask_unlock_password
    from walletkit.daemon import DaemonError
    from walletkit.wallet import WalletError

    config = _load_config()
    client = _wallet_client(config)

    password = ask_unlock_password()
    try:
        unlocked = client.unlock_wallet(password, for_staking=staking)
    except (DaemonError, WalletError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not unlocked:
        console.print("[red]Error: The wallet passphrase entered was incorrect[/red]")
        raise typer.Exit(1)
    console.print("[green]Wallet unlocked[/green]" + (" for staking" if staking else ""))


@app.command()
def lock():
    """Lock the wallet."""
    from walletkit.daemon import DaemonError
    from walletkit.wallet import WalletError

    config = _load_config()
    client = _wallet_client(config)

    try:
        client.lock_wallet()
    except (DaemonError, WalletError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]Wallet locked[/green]")


@app.command()
def seed(
    to_file: bool = typer.Option(False, "--file", "-f", help="Save the seed to a file"),
):
    """Display the wallet recovery seed, or save it to a file."""
    from walletkit.cli.prompts import (
        SEED_DISPLAY_WARNING,
        ask_seed_recovery,
        ask_store_seed_in_file,
        confirm_seed_stored,
    )
    from walletkit.config.loader import get_config_path, save_config
    from walletkit.daemon import DaemonError
    from walletkit.wallet import WalletError

    config = _load_config()
    client = _wallet_client(config)

    def show_seed():
        console.print(SEED_DISPLAY_WARNING)
        console.print("\nRequesting private seed...")
        console.print(client.dump_hd_info(), highlight=False)

    try:
        if to_file:
            if not ask_store_seed_in_file(console):
                return
            path = client.save_seed(client.controller.bin_folder / client.controller.coin.seed_file)
            console.print(
                f"Now please store the private seed file somewhere safe. It has been saved to: {path}"
            )
            return

        if config.user_confirmed_seed_recovery:
            show_seed()
            return

        while True:
            choice = ask_seed_recovery(console)
            if choice == "d":
                show_seed()
            elif choice == "c":
                if confirm_seed_stored():
                    config.user_confirmed_seed_recovery = True
                    save_config(config, get_config_path())
                    console.print("[green]Thanks, seed backup confirmed[/green]")
                    return
                console.print("[yellow]Response did not match[/yellow]")
            else:
                return
    except (DaemonError, WalletError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Install
# ============================================================================


@app.command()
def install(
    force: bool = typer.Option(False, "--force", help="Reinstall even if binaries exist"),
    skip_path: bool = typer.Option(False, "--skip-path", help="Do not edit ~/.profile"),
):
    """Download the coin binaries and prepare the coin's first run."""
    from walletkit.daemon import DaemonError
    from walletkit.install import (
        InstallError,
        add_bin_folder_to_path,
        install_coin_binaries,
        is_installed,
        run_initial_daemon,
    )

    config = _load_config()
    controller = _get_controller(config)
    identity, platform = config.project_type, controller.platform

    try:
        if is_installed(identity, platform, controller.bin_folder) and not force:
            console.print(f"[green]{config.coin_name} binaries already installed[/green] in {controller.bin_folder}")
        else:
            running, pid = controller.is_running()
            if running:
                console.print(f"[red]Error: {controller.binary_name} is running (PID {pid}). Run: walletkit stop[/red]")
                raise typer.Exit(1)
            installed = install_coin_binaries(identity, platform, controller.bin_folder, console=console)
            for path in installed:
                console.print(f"  [green]✓[/green] {path}")

        run_initial_daemon(identity, platform, controller.runner, controller.bin_folder)
        console.print(f"[green]{config.coin_name} configured[/green]")

        if not skip_path and add_bin_folder_to_path(identity, platform, bin_folder=controller.bin_folder):
            console.print(f"Added {controller.bin_folder} to PATH in ~/.profile")
    except (InstallError, DaemonError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Config Commands
# ============================================================================


config_app = typer.Typer(help="Manage walletkit configuration")
app.add_typer(config_app, name="config")


@config_app.command("init")
def config_init(
    coin: str = typer.Option("divi", "--coin", "-c", help="Coin to manage (divi, phore, pivx, trezarcoin)"),
    directory: Path = typer.Option(None, "--dir", help="Where to write the config (default: current dir)"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config"),
):
    """Create a default config file."""
    from walletkit.coins import CoinIdentity
    from walletkit.config.loader import CLI_CONFIG_FILE, create_default_config, get_running_dir

    try:
        identity = CoinIdentity.from_name(coin)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    target_dir = directory or get_running_dir()
    if (target_dir / CLI_CONFIG_FILE).exists() and not force:
        console.print(f"[yellow]Config already exists: {target_dir / CLI_CONFIG_FILE}[/yellow]")
        raise typer.Exit(1)

    path = create_default_config(target_dir, identity)
    console.print(f"[green]Created {path}[/green]")


@config_app.command("show")
def config_show():
    """Show every config value."""
    from walletkit.config.path_utils import get_all_paths

    config = _load_config()
    table = Table()
    table.add_column("Path", style="cyan")
    table.add_column("Value")
    for path, value in get_all_paths(config).items():
        table.add_row(path, _display_value(value))
    console.print(table)


@config_app.command("get")
def config_get(path: str = typer.Argument(..., help="Field path, e.g. serverIp")):
    """Print one config value."""
    from walletkit.config.path_utils import get_by_path

    config = _load_config()
    try:
        value = get_by_path(config, path)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    console.print(_display_value(value), highlight=False)


@config_app.command("set")
def config_set(
    path: str = typer.Argument(..., help="Field path, e.g. port"),
    value: str = typer.Argument(..., help="New value"),
):
    """Change one config value and save the file."""
    from walletkit.config.loader import get_config_path, save_config
    from walletkit.config.path_utils import set_by_path

    config = _load_config()
    try:
        set_by_path(config, path, value)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    save_config(config, get_config_path())
    console.print(f"[green]{path} updated[/green]")


def _display_value(value) -> str:
    from enum import Enum

    if isinstance(value, Enum):
        return value.name.lower()
    return str(value)


if __name__ == "__main__":
    app()
