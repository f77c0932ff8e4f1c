"""Per-entity-type registry of cached fields."""

import operator
from typing import Any, Callable, Dict, Optional

from fieldcache.core.logging import get_logger
from fieldcache.models.field import FieldOptions, FieldSpec, Producer, normalize_ttl
from fieldcache.services.keys import entity_key_name
from fieldcache.services.serializer import time_hooks

logger = get_logger(__name__)


def attribute_producer(name: str) -> Producer:
    """Default producer: mirror the entity's own attribute into the cache."""
    return operator.attrgetter(name)


class FieldRegistry:
    """Field specs keyed by entity type.

    Written while entity types are being defined, read afterwards. Subclasses
    inherit the fields of their parents; a subclass registration with the same
    name shadows the parent's spec.
    """

    def __init__(self):
        self._fields: Dict[type, Dict[str, FieldSpec]] = {}

    def register(self, entity_type: type, name: str,
                 options: Optional[Dict[str, Any]] = None,
                 producer: Optional[Producer] = None) -> FieldSpec:
        """Register (or replace) a cached field.

        Args:
            entity_type: Owning entity class
            name: Field name, unique per entity type
            options: ttl, parse, store, time, no_auto, class_level
            producer: Computes the value; defaults to reading the attribute

        Returns:
            The stored FieldSpec
        """
        options = dict(options or {})
        unknown = set(options) - {"ttl", "parse", "store", "time", "no_auto", "class_level"}
        if unknown:
            raise ValueError(f"Unknown cached field options: {sorted(unknown)}")

        flags = FieldOptions(
            no_auto=bool(options.get("no_auto", False)),
            class_level=bool(options.get("class_level", False)),
            time=bool(options.get("time", False)),
        )
        parse = options.get("parse")
        store = options.get("store")
        if flags.time:
            time_parse, time_store = time_hooks()
            parse = parse or time_parse
            store = store or time_store

        spec = FieldSpec(
            name=name,
            producer=producer or attribute_producer(name),
            default_ttl=normalize_ttl(options.get("ttl")),
            parse=parse,
            store=store,
            options=flags,
        )

        replaced = name in self._fields.get(entity_type, {})
        self._fields.setdefault(entity_type, {})[name] = spec
        logger.debug("Cached field registered", entity=entity_key_name(entity_type),
                     field=name, ttl=spec.default_ttl, class_level=flags.class_level,
                     replaced=replaced)
        return spec

    def fields(self, entity_type: type) -> Dict[str, FieldSpec]:
        """All specs visible to an entity type, including inherited ones."""
        merged: Dict[str, FieldSpec] = {}
        for klass in reversed(getattr(entity_type, "__mro__", (entity_type,))):
            merged.update(self._fields.get(klass, {}))
        return merged

    def lookup(self, entity_type: type, name: str) -> Optional[FieldSpec]:
        """Spec for a field, None if not registered."""
        return self.fields(entity_type).get(name)

    def for_each(self, entity_type: type, fn: Callable[[FieldSpec], Any]) -> None:
        for spec in self.fields(entity_type).values():
            fn(spec)

    def is_registered(self, entity_type: type) -> bool:
        return bool(self.fields(entity_type))
