"""Shared base model for persisted entities."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base model whose JSON form uses camelCase keys.

    Persisted documents, backups and API payloads all use the camelCase
    field names (``patientId``, ``createdAt``); Python code uses snake_case
    attributes. Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_document(self) -> dict:
        """Dump to the JSON-ready camelCase form used for storage."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
