"""Interactive terminal prompts."""

import typer
from rich.console import Console

SEED_STORED_SAFELY = "Confirm"
PASSWORD_TRIES = 3

SEED_DISPLAY_WARNING = (
    "A recovery seed can be used to recover your wallet, should anything happen "
    "to this computer.\n\n"
    "It's a good idea to have more than one and keep each in a safe place, "
    "other than your computer."
)

SEED_FILE_WARNING = (
    SEED_DISPLAY_WARNING
    + "\n\nStoring your private seed in a file is risky."
)

ENCRYPT_WARNING = (
    "Your wallet is currently [red]UNENCRYPTED[/red]!\n\n"
    "It is *highly* recommended that you encrypt your wallet before proceeding any further."
)

SEED_RECOVERY_WARNING = (
    "[bold red]*** WARNING ***[/bold red]\n\n"
    "You haven't provided confirmation that you've backed up your recovery seed!\n\n"
    "This is *extremely* important as it's the only way of recovering your wallet in the future.\n\n"
    "To (d)isplay your recovery seed now press: d, to (c)onfirm that you've backed it up "
    "press: c, or to (m)ove on, press: m"
)

SEED_RECOVERY_CHOICES = ("d", "c", "m")


def ask_yes_no(message: str) -> bool:
    return typer.confirm(message, default=False)


def ask_encrypt_wallet(console: Console) -> bool:
    console.print(ENCRYPT_WARNING)
    return ask_yes_no("Encrypt it now?")


def ask_store_seed_in_file(console: Console) -> bool:
    console.print(SEED_FILE_WARNING)
    return ask_yes_no("Please confirm that you understand the risks")


def ask_seed_recovery(console: Console) -> str:
    """Return 'd' (display), 'c' (confirmed) or 'm' (move on)."""
    console.print(SEED_RECOVERY_WARNING)
    while True:
        resp = typer.prompt("Please enter [d/c/m]").strip().lower()
        if resp in SEED_RECOVERY_CHOICES:
            return resp
        console.print(f"[yellow]'{resp}' is not one of d, c or m[/yellow]")


def confirm_seed_stored() -> bool:
    """The user must type the confirmation word exactly."""
    resp = typer.prompt(f"Please enter the response: {SEED_STORED_SAFELY}", default="",
                        show_default=False)
    return resp == SEED_STORED_SAFELY


def ask_encryption_password(console: Console, tries: int = PASSWORD_TRIES) -> str | None:
    """Ask for a new wallet password twice. None if it never matched."""
    for _ in range(tries):
        first = typer.prompt("Please enter a password to encrypt your wallet", hide_input=True)
        second = typer.prompt("Now please re-enter your password", hide_input=True)
        if first == second:
            return first
        console.print("[yellow]The passwords don't match, please try again...[/yellow]")
    return None


def ask_unlock_password() -> str:
    return typer.prompt("Please enter your wallet encryption password", hide_input=True)
