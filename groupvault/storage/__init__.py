"""
GroupVault storage module.

Storage adapters for vault state and the backend selector.
"""

from pathlib import Path
from uuid import UUID

from ..config import VaultConfig
from .base import StorageAdapter
from .file import JSONFileStorage
from .memory import InMemoryStorage


def vault_file_path(config: VaultConfig, vault_id: UUID) -> Path:
    """Location of a vault's JSON document for the file backend."""
    return Path(config.storage_dir) / f"{vault_id}.json"


def create_storage(config: VaultConfig, vault_id: UUID) -> StorageAdapter:
    """
    Build the storage adapter selected by the configuration.

    Args:
        config: GroupVault configuration
        vault_id: Vault the adapter will hold

    Returns:
        A fresh storage adapter
    """
    if config.storage_backend == "file":
        return JSONFileStorage(vault_file_path(config, vault_id))
    return InMemoryStorage()


__all__ = [
    "StorageAdapter",
    "InMemoryStorage",
    "JSONFileStorage",
    "create_storage",
    "vault_file_path",
]
