"""Read-through cache access for registered fields.

Reads never recompute a present value, even one close to expiry. Recompute
happens on a miss (unless the field is ``no_auto``) or from the write
lifecycle.

Concurrent cold misses on the same key are not coordinated by default: every
caller that misses runs the producer and the last SET wins. Callers that need
at-most-once computation per process can enable ``single_flight``.
"""

import operator
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

from fieldcache.constants import CLASS_LEVEL_ID
from fieldcache.core.cache import KeyValueBackend
from fieldcache.core.exceptions import MalformedClassLookup
from fieldcache.core.logging import get_logger
from fieldcache.models.field import FieldSpec
from fieldcache.services.invalidator import Invalidator
from fieldcache.services.keys import entity_key_name, key_for
from fieldcache.services.registry import FieldRegistry
from fieldcache.services.serializer import Serializer
from fieldcache.services.ttl import TTLResolver

logger = get_logger(__name__)

EntityLoader = Callable[[type, Any], Optional[Any]]
Identity = Callable[[Any], Any]


class CacheAccessor:
    """Fetches cached fields, computing and storing them on a miss."""

    def __init__(self, backend: KeyValueBackend, registry: FieldRegistry,
                 serializer: Serializer, ttl_resolver: TTLResolver,
                 invalidator: Invalidator, loader: Optional[EntityLoader] = None,
                 identity: Optional[Identity] = None, single_flight: bool = False):
        self.backend = backend
        self.registry = registry
        self.serializer = serializer
        self.ttl_resolver = ttl_resolver
        self.invalidator = invalidator
        self.loader = loader
        self.identity = identity or operator.attrgetter("id")
        self.single_flight = single_flight
        self._local_locks: Dict[str, "_KeyLock"] = {}
        self._locks_guard = threading.Lock()

    # =========================================================================
    # PRIMITIVES
    # =========================================================================

    def get(self, entity_type: type, identifier: Any, name: str) -> Any:
        """Cached value, or None on miss or for an unregistered field."""
        spec = self.registry.lookup(entity_type, name)
        if spec is None:
            return None
        raw = self.backend.get(key_for(entity_type, identifier, name))
        return self.serializer.decode(raw, spec)

    def set(self, context: Any, name: str) -> Any:
        """Recompute a field from its context and store it.

        Args:
            context: Entity instance, or the entity type for class-level fields
            name: Field name

        Returns:
            The stored value after its encode/decode round trip, or False if
            the field is not registered for this context
        """
        if isinstance(context, type):
            entity_type, instance, identifier = context, None, CLASS_LEVEL_ID
        else:
            entity_type, instance, identifier = type(context), context, self.identity(context)

        spec = self.registry.lookup(entity_type, name)
        if spec is None:
            logger.debug("Set skipped for unregistered field",
                         entity=entity_key_name(entity_type), field=name)
            return False
        if spec.class_level != (instance is None):
            logger.debug("Set skipped, field scope does not match context",
                         entity=entity_key_name(entity_type), field=name,
                         class_level=spec.class_level)
            return False
        if identifier is None:
            logger.debug("Set skipped, entity has no identifier",
                         entity=entity_key_name(entity_type), field=name)
            return False

        return self._store(entity_type, identifier, instance, context, spec)

    # =========================================================================
    # READ-THROUGH
    # =========================================================================

    def smart_fetch(self, entity_type: type, identifier: Any, name: str) -> Any:
        """Cached value by identifier; on a miss load the entity and recompute."""
        spec = self.registry.lookup(entity_type, name)
        if spec is None or not spec.scope_matches(identifier):
            return None
        if spec.class_level:
            return self._read_through(entity_type, identifier, spec, lambda: entity_type)
        return self._read_through(entity_type, identifier, spec,
                                  lambda: self._load(entity_type, identifier))

    def fetch(self, instance: Any, name: str) -> Any:
        """Cached value for an instance already in hand.

        Class-level fields are read but never recomputed from an instance.
        """
        entity_type = type(instance)
        spec = self.registry.lookup(entity_type, name)
        if spec is None:
            return None
        if spec.class_level:
            return self.get(entity_type, CLASS_LEVEL_ID, name)
        identifier = self.identity(instance)
        if identifier is None:
            return None
        return self._read_through(entity_type, identifier, spec, lambda: instance)

    def fetch_class(self, entity_type: type, name: str) -> Any:
        """Class-level read-through; the producer receives the entity type."""
        return self.smart_fetch(entity_type, CLASS_LEVEL_ID, name)

    def set_class(self, entity_type: type, name: str) -> Any:
        return self.set(entity_type, name)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _read_through(self, entity_type: type, identifier: Any, spec: FieldSpec,
                      resolve_context: Callable[[], Any]) -> Any:
        key = key_for(entity_type, identifier, spec.name)
        raw = self.backend.get(key)
        if raw is not None:
            return self.serializer.decode(raw, spec)
        if spec.no_auto:
            return None

        if not self.single_flight:
            return self._recompute(entity_type, identifier, spec, resolve_context)

        with self._key_lock(key):
            raw = self.backend.get(key)
            if raw is not None:
                return self.serializer.decode(raw, spec)
            return self._recompute(entity_type, identifier, spec, resolve_context)

    def _recompute(self, entity_type: type, identifier: Any, spec: FieldSpec,
                   resolve_context: Callable[[], Any]) -> Any:
        context = resolve_context()
        if context is None:
            return None
        instance = None if spec.class_level else context
        return self._store(entity_type, identifier, instance, context, spec)

    def _store(self, entity_type: type, identifier: Any, instance: Optional[Any],
               context: Any, spec: FieldSpec) -> Any:
        key = key_for(entity_type, identifier, spec.name)
        value = spec.producer(context)
        self.backend.set(key, self.serializer.encode(value, spec))

        ttl = self.ttl_resolver.resolve(instance, spec)
        if ttl:
            self.invalidator.clear_one(entity_type, identifier, spec.name, ttl)

        # Return what a reader would see, not the raw producer output
        return self.serializer.decode(self.backend.get(key), spec)

    def _load(self, entity_type: type, identifier: Any) -> Optional[Any]:
        if self.loader is None:
            logger.debug("No entity loader configured, miss not recomputed",
                         entity=entity_key_name(entity_type), identifier=identifier)
            return None
        entity = self.loader(entity_type, identifier)
        if entity is not None and not isinstance(entity, entity_type):
            raise MalformedClassLookup(entity_key_name(entity_type), type(entity).__name__)
        return entity

    @contextmanager
    def _key_lock(self, key: str) -> Iterator[None]:
        """Hold the per-key lock. The entry is dropped once no caller holds or awaits it."""
        with self._locks_guard:
            entry = self._local_locks.get(key)
            if entry is None:
                entry = self._local_locks[key] = _KeyLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if not entry.holders:
                    del self._local_locks[key]


class _KeyLock:
    """Per-key lock plus the number of callers holding or waiting on it."""
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        self.holders = 0
