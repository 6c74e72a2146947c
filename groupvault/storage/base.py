"""
Storage adapter interface.

Backends implement this protocol independently; the vault picks one at
construction and treats it as a strongly consistent key/value store for a
single vault.
"""

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class StorageAdapter(Protocol):
    """Durable key/value store holding the JSON state of one vault."""

    async def get(self, key: str) -> Any:
        """Return the JSON value stored under ``key``, or None."""
        ...

    async def set(self, key: str, value: Any) -> None:
        """Store a JSON value under ``key``."""
        ...

    async def set_many(self, values: Dict[str, Any]) -> None:
        """Store several JSON values at once. Either all of them land or none does."""
        ...

    async def destroy(self) -> None:
        """Irreversibly erase everything this adapter holds."""
        ...
