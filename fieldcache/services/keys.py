"""Cache key naming.

Key format is ``<EntityTypeName>_<identifier>_<fieldName>``. Existing caches
depend on this exact layout, so it must not change.
"""

from typing import Any, Union

from fieldcache.constants import KEY_SEPARATOR


def entity_key_name(entity_type: Union[type, str]) -> str:
    """Type name used as the key namespace."""
    if isinstance(entity_type, str):
        return entity_type
    return entity_type.__name__


def key_for(entity_type: Union[type, str], identifier: Any, field_name: str) -> str:
    """Derive the Redis key for one cached field."""
    return KEY_SEPARATOR.join((entity_key_name(entity_type), str(identifier), field_name))
