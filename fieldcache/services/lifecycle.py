"""Entity write lifecycle wiring.

The three callbacks can be invoked directly by any entity framework. For
SQLAlchemy / SQLModel mapped classes, ``bind`` attaches them as mapper events:

    before_insert  -> on_before_create
    before_delete  -> on_before_destroy
    after_insert   -> on_after_save
    after_update   -> on_after_save

Mapper events run inside the flush. Producers should read the entity's own
attributes rather than issue queries through the flushing session.
"""

from typing import Any, Set

from sqlalchemy import event, inspect

from fieldcache.core.logging import get_logger
from fieldcache.services.accessor import CacheAccessor
from fieldcache.services.invalidator import Invalidator
from fieldcache.services.keys import entity_key_name
from fieldcache.services.registry import FieldRegistry

logger = get_logger(__name__)


class LifecycleBinder:
    """Invalidates and refreshes cached fields from entity write events."""

    def __init__(self, registry: FieldRegistry, accessor: CacheAccessor,
                 invalidator: Invalidator):
        self.registry = registry
        self.accessor = accessor
        self.invalidator = invalidator
        self._bound: Set[type] = set()

    def on_before_create(self, entity: Any) -> None:
        """Clear stale values left behind by a reused identifier."""
        identifier = self.accessor.identity(entity)
        if identifier is None:
            return
        self.invalidator.clear_all(type(entity), identifier, 0)

    def on_before_destroy(self, entity: Any) -> None:
        identifier = self.accessor.identity(entity)
        if identifier is None:
            return
        self.invalidator.clear_all(type(entity), identifier, 0)

    def on_after_save(self, entity: Any) -> None:
        """Recompute every instance field from the saved state."""
        for spec in self.registry.fields(type(entity)).values():
            if not spec.class_level:
                self.accessor.set(entity, spec.name)

    def is_bound(self, entity_type: type) -> bool:
        return any(klass in self._bound for klass in entity_type.__mro__)

    def bind(self, entity_type: type) -> bool:
        """Attach mapper events once per entity type hierarchy.

        Returns:
            True if events were attached by this call
        """
        if self.is_bound(entity_type):
            return False
        if inspect(entity_type, raiseerr=False) is None:
            logger.debug("Entity type is not mapped, lifecycle left to caller",
                         entity=entity_key_name(entity_type))
            return False

        event.listen(entity_type, "before_insert", self._before_insert, propagate=True)
        event.listen(entity_type, "before_delete", self._before_delete, propagate=True)
        event.listen(entity_type, "after_insert", self._after_save, propagate=True)
        event.listen(entity_type, "after_update", self._after_save, propagate=True)
        self._bound.add(entity_type)
        logger.info("Cache lifecycle bound", entity=entity_key_name(entity_type))
        return True

    def _before_insert(self, mapper, connection, target) -> None:
        self.on_before_create(target)

    def _before_delete(self, mapper, connection, target) -> None:
        self.on_before_destroy(target)

    def _after_save(self, mapper, connection, target) -> None:
        self.on_after_save(target)
