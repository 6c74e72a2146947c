"""
JSON file storage backend.

Keeps one vault's state in ``<directory>/<vault-id>.json``. Every write
rewrites the whole document atomically (temp file + rename).
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class JSONFileStorage:
    """
    File-backed storage for a single vault.

    Example:
        ```python
        storage = JSONFileStorage("/var/lib/groupvault/3f1c....json")
        await storage.set("name", "Team secrets")
        name = await storage.get("name")
        ```
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Initialize JSONFileStorage.

        Args:
            path: Path of the vault's JSON document (created on first write)
        """
        self.path = Path(path)
        self._document: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._document is None:
            if not self.path.exists():
                self._document = {}
            else:
                try:
                    with self.path.open("r", encoding="utf-8") as fh:
                        data = json.load(fh)
                except json.JSONDecodeError as e:
                    raise StorageError(f"Corrupt vault file {self.path}: {e}") from e
                except OSError as e:
                    raise StorageError(f"Cannot read vault file {self.path}: {e}") from e
                if not isinstance(data, dict):
                    raise StorageError(f"Corrupt vault file {self.path}: expected an object")
                self._document = data
        return self._document

    def _write(self, document: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".vault-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(document, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Cannot write vault file {self.path}: {e}") from e

    async def get(self, key: str) -> Any:
        document = await asyncio.to_thread(self._load)
        return json.loads(json.dumps(document.get(key)))

    async def set(self, key: str, value: Any) -> None:
        await self.set_many({key: value})

    async def set_many(self, values: Dict[str, Any]) -> None:
        document = dict(await asyncio.to_thread(self._load))
        document.update(values)
        logger.debug("Writing keys %s to %s", ", ".join(values), self.path)
        await asyncio.to_thread(self._write, document)
        self._document = document

    async def destroy(self) -> None:
        try:
            await asyncio.to_thread(self.path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot delete vault file {self.path}: {e}") from e
        self._document = None
        logger.info("Vault file %s deleted", self.path)
