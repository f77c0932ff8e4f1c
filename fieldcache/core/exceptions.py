"""Field cache exception hierarchy.

Redis connectivity and protocol errors are deliberately absent: they propagate
from redis-py unchanged.
"""


class FieldCacheError(Exception):
    """Base exception for all field cache errors."""


class FieldNotRegistered(FieldCacheError, KeyError):
    """No field spec exists for the requested entity type and name."""

    def __init__(self, entity_name: str, field_name: str):
        self.entity_name = entity_name
        self.field_name = field_name
        super().__init__(f"{entity_name} has no cached field '{field_name}'")

    def __str__(self) -> str:
        return self.args[0]


class SerializationFailure(FieldCacheError):
    """A custom parse or store hook raised."""

    def __init__(self, field_name: str, hook: str, cause: Exception):
        self.field_name = field_name
        self.hook = hook
        self.cause = cause
        super().__init__(f"[{field_name}] {hook} hook failed: {cause}")


class MalformedClassLookup(FieldCacheError, TypeError):
    """Entity loader resolved an object of the wrong entity type."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Loader returned {actual}, expected {expected}")
