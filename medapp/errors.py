"""Exceptions raised by the data layer."""


class DataLayerError(RuntimeError):
    """Base exception for data layer errors."""


class SerializationError(DataLayerError):
    """Raised when a value cannot be encoded to or decoded from JSON."""


class PersistenceError(DataLayerError):
    """Raised when the persistent medium fails to read or write."""


class ValidationError(DataLayerError):
    """Raised when an entity or snapshot has an invalid shape."""


class DuplicateIdError(ValidationError):
    """Raised when an entity id already exists in its collection."""


class NotFoundError(DataLayerError):
    """Raised when a mutation references an id that does not exist."""
