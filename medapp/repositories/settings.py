"""Application preferences document."""

import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from ..models import AppSettings
from ..storage import KeyValueStore, StorageKeys
from .base import field_aliases

logger = logging.getLogger(__name__)


class SettingsRepository:
    """Single settings document; defaults apply when nothing is stored."""

    key = StorageKeys.APP_SETTINGS

    def __init__(self, store: KeyValueStore, defaults: Optional[AppSettings] = None):
        self.store = store
        self.defaults = defaults or AppSettings()
        self._aliases = field_aliases(AppSettings)

    def _validate(self, data: Any) -> AppSettings:
        try:
            return AppSettings.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid settings: {e}") from e

    async def get(self) -> AppSettings:
        """Stored settings merged over the defaults."""
        stored = await self.store.get(self.key)
        if not isinstance(stored, dict):
            return self.defaults.model_copy()
        try:
            return self._validate({**self.defaults.to_document(), **stored})
        except ValidationError as e:
            logger.warning(f"Stored settings are invalid, using defaults: {e}")
            return self.defaults.model_copy()

    async def save(self, settings: Any) -> AppSettings:
        settings = self._validate(settings)
        await self.store.set(self.key, settings.to_document())
        return settings

    async def update(self, patch: Mapping[str, Any]) -> AppSettings:
        """Merge patch into the current settings and save them."""
        result = []

        def _merge(current: Any) -> dict:
            base = self.defaults.to_document()
            if isinstance(current, dict):
                base.update(current)
            for name, value in patch.items():
                base[self._aliases.get(name, name)] = value
            settings = self._validate(base)
            result.append(settings)
            return settings.to_document()

        await self.store.mutate(self.key, _merge)
        logger.info(f"Settings updated: {', '.join(patch)}")
        return result[0]
