"""Generic whole-collection repository over the key-value store."""

import logging
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..errors import DuplicateIdError, NotFoundError, SerializationError, ValidationError
from ..storage import UNCHANGED, KeyValueStore

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def field_aliases(*models: type[BaseModel]) -> Dict[str, str]:
    """Map every field name of the given models to its JSON alias."""
    aliases: Dict[str, str] = {}
    for model in models:
        for name, info in model.model_fields.items():
            aliases[name] = info.alias or name
    return aliases


class CollectionRepository(Generic[T]):
    """
    CRUD over a list of entities stored as one JSON document.

    Every mutation rewrites the whole collection through
    KeyValueStore.mutate(), which serializes writers per key. Reads skip
    stored records that no longer validate instead of failing.

    Subclasses set ``key``, ``adapter`` (validating a single entity),
    ``models`` (for patch aliases) and ``entity_name``.
    """

    key: str
    adapter: TypeAdapter
    models: tuple = ()
    entity_name: str = "item"

    def __init__(self, store: KeyValueStore, ttl_minutes: Optional[float] = None):
        """
        Initialize repository.

        Args:
            store: Key-value store holding the collection
            ttl_minutes: Cache lifetime applied on every write
        """
        self.store = store
        self.ttl_minutes = ttl_minutes
        self._aliases = field_aliases(*self.models)

    # ==================== Helpers ====================

    def validate(self, item: Any) -> T:
        """
        Validate a dict or model instance into an entity.

        Raises:
            ValidationError: if a required field is missing or has a bad value
        """
        try:
            return self.adapter.validate_python(item)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {self.entity_name}: {e}") from e

    def _records(self, value: Any) -> List[Any]:
        if not isinstance(value, list):
            raise SerializationError(f"Expected a list under {self.key}, got {type(value).__name__}")
        return value

    def _merge(self, record: Mapping[str, Any], patch: Mapping[str, Any]) -> Dict[str, Any]:
        merged = dict(record)
        for name, value in patch.items():
            merged[self._aliases.get(name, name)] = value
        merged["id"] = record["id"]
        return merged

    def _check_new(self, records: List[Any], entity: T) -> None:
        if any(isinstance(r, dict) and r.get("id") == entity.id for r in records):
            raise DuplicateIdError(f"{self.entity_name} {entity.id} already exists")

    # ==================== Operations ====================

    async def get_all(self) -> List[T]:
        """Load every entity; unreadable storage yields an empty list."""
        raw = await self.store.get(self.key, [])
        if not isinstance(raw, list):
            logger.error(f"Ignoring non-list value stored under {self.key}")
            return []

        entities = []
        for record in raw:
            try:
                entities.append(self.validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping malformed {self.entity_name} record: {e}")
        return entities

    async def get(self, item_id: str) -> Optional[T]:
        for entity in await self.get_all():
            if entity.id == item_id:
                return entity
        return None

    async def save_all(self, items: List[Any]) -> None:
        """Replace the whole collection."""
        entities = [self.validate(item) for item in items]
        seen: set[str] = set()
        for entity in entities:
            if entity.id in seen:
                raise DuplicateIdError(f"{self.entity_name} {entity.id} appears twice")
            seen.add(entity.id)
        await self.store.set(self.key, [e.to_document() for e in entities], self.ttl_minutes)

    async def add(self, item: Any) -> T:
        """
        Append one entity.

        Raises:
            ValidationError: if the item is malformed
            DuplicateIdError: if its id is already stored
        """
        entity = self.validate(item)

        def _append(current: Any) -> List[Any]:
            records = self._records(current)
            self._check_new(records, entity)
            return [*records, entity.to_document()]

        await self.store.mutate(self.key, _append, default=[], ttl_minutes=self.ttl_minutes)
        logger.info(f"Added {self.entity_name} {entity.id}")
        return entity

    async def update(self, item_id: str, patch: Mapping[str, Any], missing_ok: bool = True) -> Optional[T]:
        """
        Merge patch into the entity with item_id.

        Patch keys may be attribute names or their camelCase aliases; the id
        itself cannot change.

        Returns:
            The updated entity, or None if no entity has that id

        Raises:
            NotFoundError: if the id is unknown and missing_ok is False
            ValidationError: if the merged entity is invalid
        """
        found: List[T] = []

        def _apply(current: Any) -> Any:
            records = self._records(current)
            updated = []
            for record in records:
                if isinstance(record, dict) and record.get("id") == item_id:
                    entity = self.validate(self._merge(record, patch))
                    found.append(entity)
                    updated.append(entity.to_document())
                else:
                    updated.append(record)
            if not found:
                if not missing_ok:
                    raise NotFoundError(f"{self.entity_name} {item_id} not found")
                return UNCHANGED
            return updated

        await self.store.mutate(self.key, _apply, default=[], ttl_minutes=self.ttl_minutes)
        if not found:
            logger.debug(f"Update ignored, {self.entity_name} {item_id} not found")
            return None
        return found[0]

    async def delete(self, item_id: str, missing_ok: bool = True) -> bool:
        """
        Remove the entity with item_id.

        Returns:
            True if an entity was removed

        Raises:
            NotFoundError: if the id is unknown and missing_ok is False
        """
        removed: List[Any] = []

        def _remove(current: Any) -> Any:
            records = self._records(current)
            kept = []
            for record in records:
                if isinstance(record, dict) and record.get("id") == item_id:
                    removed.append(record)
                else:
                    kept.append(record)
            if not removed:
                if not missing_ok:
                    raise NotFoundError(f"{self.entity_name} {item_id} not found")
                return UNCHANGED
            return kept

        await self.store.mutate(self.key, _remove, default=[], ttl_minutes=self.ttl_minutes)
        if removed:
            logger.info(f"Deleted {self.entity_name} {item_id}")
        return bool(removed)

    async def update_many(self, predicate: Callable[[T], bool], patch: Mapping[str, Any]) -> List[T]:
        """
        Merge patch into every entity matching predicate.

        Returns:
            The entities that were updated
        """
        changed: List[T] = []

        def _apply(current: Any) -> Any:
            updated = []
            for record in self._records(current):
                try:
                    entity = self.validate(record)
                except ValidationError:
                    updated.append(record)
                    continue
                if predicate(entity):
                    entity = self.validate(self._merge(record, patch))
                    changed.append(entity)
                    updated.append(entity.to_document())
                else:
                    updated.append(record)
            return updated if changed else UNCHANGED

        await self.store.mutate(self.key, _apply, default=[], ttl_minutes=self.ttl_minutes)
        return changed
