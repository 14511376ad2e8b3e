"""JSON-file key/value store.

The whole store is one JSON object on disk. Every write rewrites the file
through a temporary sibling and ``os.replace`` so a multi-key write lands
atomically or not at all.

A file that is not valid JSON is moved aside to ``<name>.corrupt``. Reads
raise ``StateCorruptionError`` from then until the next successful write,
so every reader learns that its records were lost.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from breakwatch.models.exceptions import PlatformApiUnavailableError, StateCorruptionError
from breakwatch.repositories import KeyValueStore
from breakwatch.utils.logger import get_logger

logger = get_logger("store")


class JsonFileStore(KeyValueStore):
    """Key/value store persisted in a single JSON document."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.discarded_to: Path | None = None

    def _ensure_dir(self, operation: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PlatformApiUnavailableError("storage", operation, str(e)) from e

    def _discard(self, reason: str) -> StateCorruptionError:
        # Keep the broken file aside so the next write does not destroy it
        backup = self.path.with_suffix(self.path.suffix + ".corrupt")
        logger.warning("store file %s %s, moved to %s", self.path, reason, backup)
        os.replace(self.path, backup)
        self.discarded_to = backup
        return StateCorruptionError(f"store file {self.path} {reason}")

    def _read(self) -> dict[str, Any]:
        if self.discarded_to is not None:
            raise StateCorruptionError(
                f"store file {self.path} was unreadable, moved to {self.discarded_to}"
            )
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise self._discard(f"is not valid JSON ({e})") from e
        if not isinstance(data, dict):
            raise self._discard("does not hold an object")
        return data

    def _read_for_update(self) -> dict[str, Any]:
        try:
            return self._read()
        except StateCorruptionError:
            return {}

    def _write(self, data: dict[str, Any], operation: str) -> None:
        self._ensure_dir(operation)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
            self.discarded_to = None
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def get(self, key: str) -> Any | None:
        return copy.deepcopy(self._read().get(key))

    async def get_multiple(self, keys: list[str]) -> dict[str, Any]:
        data = self._read()
        return {key: copy.deepcopy(data[key]) for key in keys if key in data}

    async def set(self, key: str, value: Any) -> bool:
        return await self.set_multiple({key: value})

    async def set_multiple(self, items: dict[str, Any]) -> bool:
        data = self._read_for_update()
        data.update(items)
        self._write(data, "set")
        return True

    async def remove(self, key: str) -> bool:
        data = self._read_for_update()
        if key not in data:
            return False
        del data[key]
        self._write(data, "remove")
        return True

    def delete_file(self) -> None:
        """Remove the backing file entirely."""
        if self.path.exists():
            self.path.unlink()
