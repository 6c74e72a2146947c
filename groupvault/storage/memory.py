"""
In-memory storage backend.
"""

import copy
import logging
from typing import Any, Dict, Optional

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class InMemoryStorage:
    """
    Process-local storage. Values are deep-copied in and out so callers never
    share mutable state with the store.
    """

    def __init__(self) -> None:
        self._store: Optional[Dict[str, Any]] = {}

    async def get(self, key: str) -> Any:
        if self._store is None:
            return None
        return copy.deepcopy(self._store.get(key))

    async def set(self, key: str, value: Any) -> None:
        await self.set_many({key: value})

    async def set_many(self, values: Dict[str, Any]) -> None:
        if self._store is None:
            raise StorageError("Storage has been destroyed")
        logger.debug("Storing keys %s in memory", ", ".join(values))
        self._store.update(copy.deepcopy(values))

    async def destroy(self) -> None:
        self._store = None
        logger.debug("In-memory storage destroyed")

    @property
    def destroyed(self) -> bool:
        return self._store is None
