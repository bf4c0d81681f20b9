"""Storage package: persistent backends, TTL cache and the key-value store."""

from .backends import InMemoryBackend, JsonFileBackend, PersistentBackend
from .cache import CacheEntry, TTLCache
from .kv_store import DEFAULT_NAMESPACE, UNCHANGED, KeyValueStore, StorageKeys

__all__ = [
    "InMemoryBackend",
    "JsonFileBackend",
    "PersistentBackend",
    "CacheEntry",
    "TTLCache",
    "DEFAULT_NAMESPACE",
    "UNCHANGED",
    "KeyValueStore",
    "StorageKeys",
]
