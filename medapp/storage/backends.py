"""Persistent key-value media the store writes through to."""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union
from urllib.parse import quote, unquote

from ..errors import PersistenceError, SerializationError

logger = logging.getLogger(__name__)


class PersistentBackend(ABC):
    """
    Async string-keyed medium holding one JSON document per key.

    Implementations raise PersistenceError for I/O failures and
    SerializationError for documents that cannot be decoded to text.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the raw document stored under key, or None."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store the raw document under key."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Delete key; removing an absent key is not an error."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Delete every key."""
        pass

    @abstractmethod
    async def list_keys(self) -> List[str]:
        """Return all stored keys."""
        pass


class InMemoryBackend(PersistentBackend):
    """Backend simulator keeping documents in a dict."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()

    async def list_keys(self) -> List[str]:
        return list(self._data)


class JsonFileBackend(PersistentBackend):
    """
    Backend storing each key as a file in a directory.

    Key names are percent-encoded into file names. Writes go to a temporary
    file that is then renamed over the target, so a crash never leaves a
    half-written document. File I/O runs in a worker thread.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Union[str, os.PathLike]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"File storage initialized at {self.directory}")

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}{self.SUFFIX}"

    def _read(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_bytes().decode("utf-8")

    def _write(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    def _delete(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def _keys(self) -> List[str]:
        return [
            unquote(path.name[: -len(self.SUFFIX)])
            for path in self.directory.glob(f"*{self.SUFFIX}")
        ]

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, key)
        except UnicodeDecodeError as e:
            raise SerializationError(f"Stored value for {key} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Failed to read {key}: {e}") from e

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write, key, value)
        except OSError as e:
            raise PersistenceError(f"Failed to write {key}: {e}") from e

    async def remove(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._delete, key)
        except OSError as e:
            raise PersistenceError(f"Failed to remove {key}: {e}") from e

    async def clear(self) -> None:
        try:
            for key in await asyncio.to_thread(self._keys):
                await asyncio.to_thread(self._delete, key)
        except OSError as e:
            raise PersistenceError(f"Failed to clear {self.directory}: {e}") from e

    async def list_keys(self) -> List[str]:
        try:
            return await asyncio.to_thread(self._keys)
        except OSError as e:
            raise PersistenceError(f"Failed to list keys in {self.directory}: {e}") from e
