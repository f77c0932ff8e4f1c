"""Field cache engine.

- Key naming and field registry
- Serializer with custom hooks and timestamp-aware JSON decoding
- Read-through accessor with optional per-key single flight
- Invalidation and TTL re-arming
- Entity write lifecycle binding (SQLAlchemy mapper events)
"""

from .keys import key_for, entity_key_name
from .registry import FieldRegistry, attribute_producer
from .serializer import Serializer, time_hooks
from .ttl import TTLResolver
from .invalidator import Invalidator
from .accessor import CacheAccessor
from .lifecycle import LifecycleBinder
from .field_cache import FieldCache

__all__ = [
    'key_for',
    'entity_key_name',
    'FieldRegistry',
    'attribute_producer',
    'Serializer',
    'time_hooks',
    'TTLResolver',
    'Invalidator',
    'CacheAccessor',
    'LifecycleBinder',
    'FieldCache',
]
