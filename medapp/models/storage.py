"""Storage diagnostics model."""

from pydantic import Field

from .base import CamelModel


class StorageInfo(CamelModel):
    """Snapshot of cache and persistent medium usage."""
    cache_size: int = Field(..., description="Number of entries held in the memory cache")
    total_keys: int = Field(..., description="Number of keys in the persistent namespace")
    last_access: dict[str, str] = Field(default_factory=dict, description="Cache timestamp per key (ISO-8601)")
