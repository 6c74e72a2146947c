"""
groupvault vault commands - File-backed vault management CLI.

Create vaults, manage members and read/write content via command line.
Commands that change a vault sign their payload with the requester's
private key, exactly as a remote client would.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from uuid import UUID

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...client import Vault
from ...config import VaultConfig, load_config
from ...exceptions import VaultError
from ...members import build_payload
from ...signer import MemberKeys

console = Console()

DIR_OPTION = typer.Option(
    None,
    "--dir",
    "-d",
    help="Directory holding vault files (defaults to GROUPVAULT_STORAGE_DIR or .)",
)
KEY_OPTION = typer.Option(
    ...,
    "--key",
    "-k",
    envvar="GROUPVAULT_PRIVATE_KEY",
    help="Requester's private key (hex)",
)


def _config(storage_dir: Optional[str]) -> VaultConfig:
    overrides: Dict[str, Any] = {"storage_backend": "file"}
    if storage_dir:
        overrides["storage_dir"] = storage_dir
    return load_config(**overrides)


async def _open_as(vault_id: str, storage_dir: Optional[str], key: str) -> Tuple[Vault, MemberKeys, UUID]:
    vault = await Vault.open(vault_id, config=_config(storage_dir))
    keys = MemberKeys.from_private_key(key)
    return vault, keys, vault.member_id_for(keys.public_key)


def _run(operation: Callable[[], Awaitable[None]]) -> None:
    """Run an async command, turning vault errors into a red message and exit 1."""
    try:
        asyncio.run(operation())
    except VaultError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def create_command(
    name: str = typer.Argument(..., help="Vault name"),
    owner_key: str = typer.Option(..., "--owner-key", "-o", help="Owner's public key (hex)"),
    description: str = typer.Option("", "--description", help="Vault description"),
    storage_dir: Optional[str] = DIR_OPTION,
) -> None:
    """
    Create a new vault owned by the given public key.

    Example:
        $ groupvault create "Team secrets" --owner-key 0x04a1b2...
    """
    console.print("\n[bold cyan]Creating Vault[/bold cyan]\n")

    async def _create() -> None:
        vault = await Vault.create(owner_key, name, description, config=_config(storage_dir))
        owner = vault.owners()[0]
        console.print("[green]✓[/green] Vault created successfully!")
        console.print(f"\nID: [cyan]{vault.id}[/cyan]")
        console.print(f"Name: [cyan]{vault.name}[/cyan]")
        console.print(f"Owner: [cyan]{owner.id}[/cyan] ({owner.address})")
        console.print(f"Generation: [cyan]{vault.generation}[/cyan]\n")

    _run(_create)


def members_command(
    vault_id: str = typer.Argument(..., help="Vault ID"),
    storage_dir: Optional[str] = DIR_OPTION,
) -> None:
    """
    List the members of a vault.

    Example:
        $ groupvault members 3f1c...
    """

    async def _members() -> None:
        vault = await Vault.open(vault_id, config=_config(storage_dir))

        table = Table(title=f"{vault.name} (generation {vault.generation})")
        table.add_column("Member ID", style="cyan")
        table.add_column("Role", style="green", no_wrap=True)
        table.add_column("Address")
        table.add_column("Key Gen", justify="right", no_wrap=True)

        for member in vault.members():
            table.add_row(
                str(member.id),
                member.role.value,
                member.address,
                str(member.key_generation) if member.key_generation is not None else "-",
            )

        console.print()
        console.print(table)
        console.print()

    _run(_members)


def add_member_command(
    vault_id: str = typer.Argument(..., help="Vault ID"),
    public_key: str = typer.Argument(..., help="New member's public key (hex)"),
    role: str = typer.Option("Viewer", "--role", "-r", help="Owner, Contributor or Viewer"),
    key: str = KEY_OPTION,
    storage_dir: Optional[str] = DIR_OPTION,
) -> None:
    """
    Add a member to a vault (rekeys the vault).

    Example:
        $ groupvault add-member 3f1c... 0x04c3d4... --role Contributor --key 0x9a...
    """

    async def _add() -> None:
        vault, keys, requester_id = await _open_as(vault_id, storage_dir, key)
        payload = build_payload("addMember", role=role, publicKey=public_key)
        member_id = await vault.add_member(requester_id, payload, keys.sign(payload))
        console.print(f"[green]✓[/green] Member added: [cyan]{member_id}[/cyan]")
        console.print(f"Generation: [cyan]{vault.generation}[/cyan]")

    _run(_add)


def remove_member_command(
    vault_id: str = typer.Argument(..., help="Vault ID"),
    member_id: str = typer.Argument(..., help="Member ID to remove"),
    key: str = KEY_OPTION,
    storage_dir: Optional[str] = DIR_OPTION,
) -> None:
    """
    Remove a member from a vault (rekeys the vault).

    Example:
        $ groupvault remove-member 3f1c... 9b2a... --key 0x9a...
    """

    async def _remove() -> None:
        vault, keys, requester_id = await _open_as(vault_id, storage_dir, key)
        payload = build_payload("removeMember", memberId=member_id)
        if await vault.remove_member(requester_id, payload, keys.sign(payload)):
            console.print(f"[green]✓[/green] Member removed: [cyan]{member_id}[/cyan]")
            console.print(f"Generation: [cyan]{vault.generation}[/cyan]")
        else:
            console.print(f"[yellow]Member not found:[/yellow] {member_id}")

    _run(_remove)


def change_role_command(
    vault_id: str = typer.Argument(..., help="Vault ID"),
    member_id: str = typer.Argument(..., help="Member ID"),
    role: str = typer.Argument(..., help="Owner, Contributor or Viewer"),
    key: str = KEY_OPTION,
    storage_dir: Optional[str] = DIR_OPTION,
) -> None:
    """
    Change a member's role.

    Example:
        $ groupvault change-role 3f1c... 9b2a... Viewer --key 0x9a...
    """

    async def _change() -> None:
        vault, keys, requester_id = await _open_as(vault_id, storage_dir, key)
        payload = build_payload("changeRole", memberId=member_id, role=role)
        if await vault.change_role(requester_id, payload, keys.sign(payload)):
            console.print(f"[green]✓[/green] Role changed to [cyan]{role}[/cyan]")
        else:
            console.print(f"[yellow]Member not found:[/yellow] {member_id}")

    _run(_change)


def store_command(
    vault_id: str = typer.Argument(..., help="Vault ID"),
    text: str = typer.Argument(..., help="Content to store"),
    key: str = KEY_OPTION,
    storage_dir: Optional[str] = DIR_OPTION,
) -> None:
    """
    Encrypt and store content, replacing what the vault held.

    The content is sealed locally; the vault only receives ciphertext.

    Example:
        $ groupvault store 3f1c... "db password: hunter2" --key 0x9a...
    """

    async def _store() -> None:
        vault, keys, requester_id = await _open_as(vault_id, storage_dir, key)
        wrapped = vault.get_wrapped_key(requester_id)
        if wrapped is None:
            console.print("[red]Error:[/red] You hold no key for this vault")
            raise typer.Exit(1)
        payload = keys.seal_content(text, wrapped)
        record = await vault.store_content(requester_id, payload, keys.sign(payload))
        console.print(f"[green]✓[/green] Content stored at [cyan]{record.timestamp}[/cyan]")

    _run(_store)


def read_command(
    vault_id: str = typer.Argument(..., help="Vault ID"),
    key: str = KEY_OPTION,
    storage_dir: Optional[str] = DIR_OPTION,
) -> None:
    """
    Read and decrypt the vault content.

    Example:
        $ groupvault read 3f1c... --key 0x9a...
    """

    async def _read() -> None:
        vault, keys, requester_id = await _open_as(vault_id, storage_dir, key)
        payload = build_payload("readContent")
        envelope = await vault.read_content(requester_id, payload, keys.sign(payload))
        if envelope.content is None:
            console.print("[yellow]Vault is empty[/yellow]")
            return
        console.print(keys.open_content(envelope))

    _run(_read)


def delete_command(
    vault_id: str = typer.Argument(..., help="Vault ID"),
    key: str = KEY_OPTION,
    storage_dir: Optional[str] = DIR_OPTION,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """
    Permanently delete a vault.

    Example:
        $ groupvault delete 3f1c... --key 0x9a... --yes
    """
    if not yes:
        typer.confirm(f"Delete vault {vault_id}? This cannot be undone", abort=True)

    async def _delete() -> None:
        vault, keys, requester_id = await _open_as(vault_id, storage_dir, key)
        payload = build_payload("deleteVault")
        await vault.delete_vault(requester_id, payload, keys.sign(payload))
        console.print(f"[green]✓[/green] Vault deleted: [cyan]{vault_id}[/cyan]")

    _run(_delete)
