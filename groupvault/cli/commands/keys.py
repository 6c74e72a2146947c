"""
groupvault keys command - Key pair utilities.

Generate member key pairs and inspect public keys.
"""

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...exceptions import VaultError
from ...signer import MemberKeys, public_key_to_address

console = Console()


def keys_generate_command(
    show_private: bool = typer.Option(
        True,
        "--show-private/--hide-private",
        help="Print the private key (store it somewhere safe)",
    ),
) -> None:
    """
    Generate a new secp256k1 key pair for a vault member.

    Example:
        $ groupvault keys generate
        $ groupvault keys generate --hide-private
    """
    keys = MemberKeys.generate()

    table = Table(title="New Member Key Pair", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", style="cyan", overflow="fold")
    table.add_row("Address", keys.address)
    table.add_row("Public key", keys.public_key)
    if show_private:
        table.add_row("Private key", keys.private_key)

    console.print()
    console.print(table)
    console.print()


def keys_address_command(
    public_key: str = typer.Argument(..., help="Public key (hex, compressed or uncompressed)"),
) -> None:
    """
    Show the address of a public key.

    Example:
        $ groupvault keys address 0x04a1b2...
    """
    try:
        address = public_key_to_address(public_key)
    except VaultError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"Address: [cyan]{address}[/cyan]")
