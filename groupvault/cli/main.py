"""
GroupVault CLI - Command-line interface for shared encrypted vaults.

Usage:
    groupvault keys             Generate and inspect member key pairs
    groupvault create           Create a vault
    groupvault members          List vault members
    groupvault add-member       Add a member (rekeys)
    groupvault remove-member    Remove a member (rekeys)
    groupvault change-role      Change a member's role
    groupvault store            Encrypt and store content
    groupvault read             Read and decrypt content
    groupvault delete           Delete a vault
"""

import logging

import typer
from rich.console import Console

from ..config import load_config
from .commands import keys, vaults

# Create the main Typer app
app = typer.Typer(
    name="groupvault",
    help="Shared encrypted vaults with signed, role-gated membership",
    add_completion=False,
)

# Create a Rich console for pretty output
console = Console()

# Vault commands
app.command(name="create")(vaults.create_command)
app.command(name="members")(vaults.members_command)
app.command(name="add-member")(vaults.add_member_command)
app.command(name="remove-member")(vaults.remove_member_command)
app.command(name="change-role")(vaults.change_role_command)
app.command(name="store")(vaults.store_command)
app.command(name="read")(vaults.read_command)
app.command(name="delete")(vaults.delete_command)

# Create keys subcommand group
keys_app = typer.Typer(help="Generate and inspect member key pairs")
keys_app.command(name="generate")(keys.keys_generate_command)
keys_app.command(name="address")(keys.keys_address_command)
app.add_typer(keys_app, name="keys")


@app.callback()
def callback(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """
    GroupVault - shared encrypted vaults for small groups of key holders.
    """
    level = logging.DEBUG if debug or load_config().debug else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
