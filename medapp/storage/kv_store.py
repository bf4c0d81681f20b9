"""Key-value store combining a persistent backend with a TTL cache."""

import asyncio
import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional

from ..errors import DataLayerError, PersistenceError, SerializationError
from ..models import StorageInfo
from .backends import PersistentBackend
from .cache import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "@MedicalApp:"

_MISSING = object()

# Returned by a mutate() callback to leave the stored value as it is.
UNCHANGED = object()


class StorageKeys:
    """Logical keys of every persisted document."""
    USER = "user"
    TOKEN = "token"
    APPOINTMENTS = "appointments"
    NOTIFICATIONS = "notifications"
    REGISTERED_USERS = "registeredUsers"
    APP_SETTINGS = "settings"
    # Reserved, nothing writes it yet.
    STATISTICS_CACHE = "statisticsCache"


class KeyValueStore:
    """
    Generic JSON document store with an in-memory TTL cache.

    Reads check the cache first and fall back to the backend, repopulating
    the cache on a miss. Read failures are logged and degrade to the
    caller's default; write failures propagate.

    Every write to a key runs under that key's lock, so read-modify-write
    sequences issued through mutate() never interleave. mutate() always reads
    the persisted document. Plain reads are not locked and may be served
    from the cache; a read that overlaps a write does not cache its result.
    """

    def __init__(
        self,
        backend: PersistentBackend,
        cache: Optional[TTLCache] = None,
        namespace: str = DEFAULT_NAMESPACE,
    ):
        """
        Initialize the store.

        Args:
            backend: Persistent medium holding the raw JSON documents
            cache: Cache instance, a fresh one if omitted
            namespace: Prefix applied to every key in the backend
        """
        self.backend = backend
        self.cache = cache if cache is not None else TTLCache()
        self.namespace = namespace
        self._locks: Dict[str, asyncio.Lock] = {}
        # Bumped after every backend write so unlocked reads that raced a
        # writer never put the superseded document back in the cache.
        self._versions: Dict[str, int] = {}
        self._generation = 0

    # ==================== Helpers ====================

    def _storage_key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def _version(self, key: str) -> tuple:
        return self._generation, self._versions.get(key, 0)

    def _bump(self, key: str) -> None:
        self._versions[key] = self._versions.get(key, 0) + 1

    @asynccontextmanager
    async def _locked(self, keys: Iterable[str]) -> AsyncIterator[None]:
        # Sorted acquisition keeps multi-key writers from deadlocking.
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(self._lock_for(key))
            yield

    @staticmethod
    def _encode(key: str, value: Any) -> str:
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot serialize value for {key}: {e}") from e

    @staticmethod
    def _decode(key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except ValueError as e:
            raise SerializationError(f"Stored value for {key} is not valid JSON: {e}") from e

    async def _load(self, key: str, use_cache: bool = True) -> Any:
        if use_cache:
            entry = self.cache.get(key)
            if entry is not None:
                return entry.data

        version = self._version(key)
        try:
            raw = await self.backend.get(self._storage_key(key))
        except OSError as e:
            raise PersistenceError(f"Failed to read {key}: {e}") from e
        if raw is None:
            return _MISSING

        value = self._decode(key, raw)
        if self._version(key) == version:
            self.cache.set(key, value)
        return value

    async def _write(self, key: str, value: Any, ttl_minutes: Optional[float] = None) -> None:
        raw = self._encode(key, value)
        try:
            await self.backend.set(self._storage_key(key), raw)
        except OSError as e:
            raise PersistenceError(f"Failed to write {key}: {e}") from e
        self._bump(key)
        self.cache.set(key, json.loads(raw), ttl_minutes)

    # ==================== Basic Operations ====================

    async def get(self, key: str, default: Any = None) -> Any:
        """
        Get the value stored under key.

        Args:
            key: Logical key
            default: Returned when the key is absent or unreadable

        Returns:
            The decoded value, or default
        """
        try:
            value = await self._load(key)
        except DataLayerError as e:
            logger.error(f"Error loading {key}: {e}")
            return default
        return default if value is _MISSING else value

    async def set(self, key: str, value: Any, ttl_minutes: Optional[float] = None) -> None:
        """
        Persist value under key and refresh the cache.

        Args:
            key: Logical key
            value: JSON-serializable value
            ttl_minutes: Cache lifetime; the cached copy never expires if omitted
        """
        async with self._lock_for(key):
            try:
                await self._write(key, value, ttl_minutes)
            except DataLayerError as e:
                logger.error(f"Error saving {key}: {e}")
                raise

    async def remove(self, key: str) -> None:
        """Delete key from the backend and the cache."""
        async with self._lock_for(key):
            try:
                await self.backend.remove(self._storage_key(key))
            except (PersistenceError, OSError) as e:
                logger.error(f"Error removing {key}: {e}")
                raise
            self._bump(key)
            self.cache.delete(key)

    async def clear_all(self) -> None:
        """Wipe the whole namespace from the backend, and the cache."""
        try:
            if self.namespace:
                for storage_key in await self.backend.list_keys():
                    if storage_key.startswith(self.namespace):
                        await self.backend.remove(storage_key)
            else:
                await self.backend.clear()
        except (PersistenceError, OSError) as e:
            logger.error(f"Error clearing storage: {e}")
            raise
        finally:
            self._generation += 1
            self.cache.clear()
        logger.info("Storage cleared")

    async def mutate(
        self,
        key: str,
        fn: Callable[[Any], Any],
        default: Any = None,
        ttl_minutes: Optional[float] = None,
    ) -> Any:
        """
        Read, transform and rewrite key as one serialized step.

        The current value is read from the backend, not the cache. Unlike
        get(), a failed read here raises instead of handing fn the default,
        so a corrupt document is never silently overwritten.

        Args:
            key: Logical key
            fn: Receives the current value (or default) and returns the new
                one, or UNCHANGED to skip the write
            default: Value passed to fn when the key is absent
            ttl_minutes: Cache lifetime for the written value

        Returns:
            The value written, or the current value when nothing changed
        """
        async with self._lock_for(key):
            try:
                current = await self._load(key, use_cache=False)
                if current is _MISSING:
                    current = default
                updated = fn(current)
                if updated is UNCHANGED:
                    return current
                await self._write(key, updated, ttl_minutes)
            except (SerializationError, PersistenceError) as e:
                logger.error(f"Error updating {key}: {e}")
                raise
            return updated

    # ==================== Multi-key Operations ====================

    async def set_many(self, items: Dict[str, Any]) -> None:
        """
        Write several keys so that either all of them change or none do.

        Every value is serialized before the first write. If the backend
        fails part way, keys already written are restored to their previous
        documents and the error is re-raised.
        """
        changes: Dict[str, Optional[str]] = {
            key: self._encode(key, value) for key, value in items.items()
        }
        await self._apply_atomically(changes)

    async def remove_many(self, keys: Iterable[str]) -> None:
        """Delete several keys, all or nothing."""
        await self._apply_atomically({key: None for key in keys})

    async def _apply_atomically(self, changes: Dict[str, Optional[str]]) -> None:
        async with self._locked(changes):
            previous: Dict[str, Optional[str]] = {}
            try:
                for key in changes:
                    previous[key] = await self._read_previous(key)
            except (PersistenceError, OSError) as e:
                logger.error(f"Error reading current values before multi-key write: {e}")
                raise PersistenceError(f"Multi-key write aborted: {e}") from e

            attempted: List[str] = []
            try:
                for key, raw in changes.items():
                    attempted.append(key)
                    if raw is None:
                        await self.backend.remove(self._storage_key(key))
                    else:
                        await self.backend.set(self._storage_key(key), raw)
                    self._bump(key)
            except (PersistenceError, OSError) as e:
                logger.error(f"Multi-key write failed at {attempted[-1]}, rolling back: {e}")
                await self._rollback(attempted, previous)
                raise PersistenceError(f"Multi-key write failed: {e}") from e

            for key, raw in changes.items():
                if raw is None:
                    self.cache.delete(key)
                else:
                    self.cache.set(key, json.loads(raw))

    async def _read_previous(self, key: str) -> Optional[str]:
        try:
            return await self.backend.get(self._storage_key(key))
        except SerializationError as e:
            # Undecodable documents cannot be put back; rollback removes them.
            logger.warning(f"Current value of {key} is unreadable and will not be restored: {e}")
            return None

    async def _rollback(self, keys: List[str], previous: Dict[str, Optional[str]]) -> None:
        for key in reversed(keys):
            try:
                old = previous[key]
                if old is None:
                    await self.backend.remove(self._storage_key(key))
                else:
                    await self.backend.set(self._storage_key(key), old)
            except (PersistenceError, OSError) as e:
                logger.critical(f"Rollback of {key} failed, storage may be inconsistent: {e}")
            finally:
                self._bump(key)
                self.cache.delete(key)

    # ==================== Introspection ====================

    def cache_size(self) -> int:
        return self.cache.size()

    def clear_cache(self) -> None:
        """Drop every cached entry; the backend is untouched."""
        self.cache.clear()
        logger.info("Cache cleared")

    async def key_count(self) -> int:
        """Number of keys in this store's namespace."""
        try:
            keys = await self.backend.list_keys()
        except (PersistenceError, OSError) as e:
            logger.error(f"Error listing keys: {e}")
            return 0
        return sum(1 for key in keys if key.startswith(self.namespace))

    def last_access_by_key(self) -> Dict[str, str]:
        """When each cached key was last stored in the cache (ISO-8601)."""
        return {key: ts.isoformat() for key, ts in self.cache.timestamps().items()}

    async def storage_info(self) -> StorageInfo:
        return StorageInfo(
            cache_size=self.cache_size(),
            total_keys=await self.key_count(),
            last_access=self.last_access_by_key(),
        )
