"""Field-level Redis cache-aside layer for persistent entities."""

from fieldcache.constants import CLASS_LEVEL_ID
from fieldcache.core.cache import KeyValueBackend, RedisBackend, create_redis_client
from fieldcache.core.config import Settings
from fieldcache.core.exceptions import (
    FieldCacheError,
    FieldNotRegistered,
    MalformedClassLookup,
    SerializationFailure,
)
from fieldcache.models.field import FieldAccessors, FieldOptions, FieldSpec
from fieldcache.services import (
    CacheAccessor,
    FieldCache,
    FieldRegistry,
    Invalidator,
    LifecycleBinder,
    Serializer,
    TTLResolver,
    key_for,
)

__version__ = "0.1.0"

__all__ = [
    "CLASS_LEVEL_ID",
    "CacheAccessor",
    "FieldAccessors",
    "FieldCache",
    "FieldCacheError",
    "FieldNotRegistered",
    "FieldOptions",
    "FieldRegistry",
    "FieldSpec",
    "Invalidator",
    "KeyValueBackend",
    "LifecycleBinder",
    "MalformedClassLookup",
    "RedisBackend",
    "SerializationFailure",
    "Serializer",
    "Settings",
    "TTLResolver",
    "create_redis_client",
    "key_for",
]
