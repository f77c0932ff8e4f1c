"""Field cache facade.

Bundles the registry, serializer, TTL resolver, accessor, invalidator and
lifecycle binder behind one object. Typical use::

    cache = FieldCache(RedisBackend(client), loader=database.load)

    cache.field(RocketShip, "title")
    cache.field(RocketShip, "launched_at", time=True)

    @cache.cached(RocketShip, ttl=10)
    def time_since_launch(ship):
        return int((datetime.now(timezone.utc) - ship.launched_at).total_seconds())

    cache.fetch(ship, "time_since_launch")
"""

import functools
from typing import Any, Callable, Dict, Optional, Tuple

from fieldcache.constants import CLASS_LEVEL_ID
from fieldcache.core.cache import KeyValueBackend
from fieldcache.core.exceptions import FieldNotRegistered
from fieldcache.core.logging import get_logger
from fieldcache.models.field import TTL, FieldAccessors, FieldSpec, Producer
from fieldcache.services.accessor import CacheAccessor, EntityLoader, Identity
from fieldcache.services.invalidator import Invalidator
from fieldcache.services.keys import entity_key_name
from fieldcache.services.lifecycle import LifecycleBinder
from fieldcache.services.registry import FieldRegistry
from fieldcache.services.serializer import Serializer
from fieldcache.services.ttl import TTLResolver

logger = get_logger(__name__)


class FieldCache:
    """Declarative cached fields for entity types."""

    def __init__(self, backend: KeyValueBackend, registry: Optional[FieldRegistry] = None,
                 loader: Optional[EntityLoader] = None, identity: Optional[Identity] = None,
                 single_flight: bool = False, bind_lifecycle: bool = True):
        self.backend = backend
        self.registry = registry if registry is not None else FieldRegistry()
        self.serializer = Serializer()
        self.ttl = TTLResolver()
        self.invalidator = Invalidator(backend, self.registry)
        self.accessor = CacheAccessor(
            backend, self.registry, self.serializer, self.ttl, self.invalidator,
            loader=loader, identity=identity, single_flight=single_flight,
        )
        self.lifecycle = LifecycleBinder(self.registry, self.accessor, self.invalidator)
        self.bind_lifecycle = bind_lifecycle
        self._accessors: Dict[Tuple[type, str], FieldAccessors] = {}

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def field(self, entity_type: type, name: str, producer: Optional[Producer] = None,
              *, ttl: Optional[TTL] = None, time: bool = False,
              parse: Optional[Callable[[str], Any]] = None,
              store: Optional[Callable[[Any], Any]] = None,
              no_auto: bool = False, class_level: bool = False) -> FieldAccessors:
        """Register a cached field and return its named accessors.

        Without a producer the field mirrors the entity attribute of the same
        name. The first registration for a mapped entity type binds its write
        lifecycle.
        """
        options = {"time": time, "no_auto": no_auto, "class_level": class_level}
        if ttl is not None:
            options["ttl"] = ttl
        if parse is not None:
            options["parse"] = parse
        if store is not None:
            options["store"] = store

        spec = self.registry.register(entity_type, name, options, producer)
        if self.bind_lifecycle:
            self.lifecycle.bind(entity_type)

        accessors = self._build_accessors(spec)
        self._accessors[(entity_type, name)] = accessors
        return accessors

    def cached(self, entity_type: type, name: Optional[str] = None, **options) -> Callable:
        """Decorator form of ``field``; the decorated function is the producer."""
        def decorator(fn: Producer) -> Producer:
            self.field(entity_type, name or fn.__name__, fn, **options)
            return fn
        return decorator

    def accessors(self, entity_type: type, name: str) -> FieldAccessors:
        """Named accessors for a registered field (parents' fields included)."""
        for klass in entity_type.__mro__:
            found = self._accessors.get((klass, name))
            if found is not None:
                return found
        raise FieldNotRegistered(entity_key_name(entity_type), name)

    def _build_accessors(self, spec: FieldSpec) -> FieldAccessors:
        name = spec.name
        if spec.class_level:
            return FieldAccessors(
                name=name,
                fetch=lambda entity_type: self.fetch_class(entity_type, name),
                expire=lambda entity_type, ttl=None: self.expire_class(entity_type, name, ttl),
                clear=lambda entity_type: self.clear_class(entity_type, name),
                set_ttl=functools.partial(self._reject_class_ttl, name),
            )
        return FieldAccessors(
            name=name,
            fetch=lambda instance: self.fetch(instance, name),
            expire=lambda instance, ttl=None: self.expire(instance, name, ttl),
            clear=lambda instance: self.clear(instance, name),
            set_ttl=lambda instance, ttl: self.set_ttl(instance, name, ttl),
        )

    @staticmethod
    def _reject_class_ttl(name: str, *args) -> None:
        raise ValueError(f"Class-level field '{name}' has no per-instance TTL")

    # =========================================================================
    # READS
    # =========================================================================

    def fetch(self, instance: Any, name: str) -> Any:
        """Read-through fetch for an instance."""
        return self.accessor.fetch(instance, name)

    def fetch_by_id(self, entity_type: type, identifier: Any, name: str) -> Any:
        """Read-through fetch by identifier; misses load the entity."""
        return self.accessor.smart_fetch(entity_type, identifier, name)

    def fetch_class(self, entity_type: type, name: str) -> Any:
        return self.accessor.fetch_class(entity_type, name)

    def get(self, entity_type: type, identifier: Any, name: str) -> Any:
        """Cached value without recompute."""
        return self.accessor.get(entity_type, identifier, name)

    # =========================================================================
    # WRITES
    # =========================================================================

    def refresh(self, context: Any, name: str) -> Any:
        """Recompute and store a field now (instance, or type for class-level)."""
        return self.accessor.set(context, name)

    def refresh_all(self, instance: Any) -> None:
        self.lifecycle.on_after_save(instance)

    def set_ttl(self, instance: Any, name: str, ttl: TTL) -> None:
        """Per-instance TTL override, applied on the next store or expire."""
        self.ttl.set_override(instance, name, ttl)

    def expire(self, instance: Any, name: str, ttl: Optional[int] = None) -> bool:
        """Re-arm a field's expiry; without ttl the resolved TTL is used.

        A field with no TTL at all is cleared.
        """
        if ttl is None:
            spec = self.registry.lookup(type(instance), name)
            if spec is None:
                return False
            ttl = self.ttl.resolve(instance, spec) or 0
        return self.invalidator.clear_one(type(instance), self.accessor.identity(instance), name, ttl)

    def clear(self, instance: Any, name: Optional[str] = None, ttl: int = 0) -> bool:
        """Clear one field, or every instance field when name is omitted."""
        identifier = self.accessor.identity(instance)
        if name is None:
            return self.invalidator.clear_all(type(instance), identifier, ttl)
        return self.invalidator.clear_one(type(instance), identifier, name, ttl)

    def expire_class(self, entity_type: type, name: str, ttl: Optional[int] = None) -> bool:
        if ttl is None:
            spec = self.registry.lookup(entity_type, name)
            if spec is None:
                return False
            ttl = spec.default_ttl or 0
        return self.invalidator.clear_one(entity_type, CLASS_LEVEL_ID, name, ttl)

    def clear_class(self, entity_type: type, name: Optional[str] = None) -> bool:
        if name is None:
            return self.invalidator.clear_all(entity_type, CLASS_LEVEL_ID, 0)
        return self.invalidator.clear_one(entity_type, CLASS_LEVEL_ID, name, 0)

    # =========================================================================
    # LIFECYCLE CALLBACKS
    # =========================================================================

    def on_before_create(self, entity: Any) -> None:
        self.lifecycle.on_before_create(entity)

    def on_before_destroy(self, entity: Any) -> None:
        self.lifecycle.on_before_destroy(entity)

    def on_after_save(self, entity: Any) -> None:
        self.lifecycle.on_after_save(entity)
