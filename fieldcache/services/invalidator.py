"""Cache invalidation and TTL re-arming."""

from typing import Any

from fieldcache.core.cache import KeyValueBackend
from fieldcache.core.logging import get_logger
from fieldcache.services.keys import entity_key_name, key_for
from fieldcache.services.registry import FieldRegistry

logger = get_logger(__name__)


class Invalidator:
    """Clears cached fields or re-arms their expiry.

    Per-key states:
        ABSENT  -> PRESENT             set
        PRESENT -> ABSENT              clear_one(ttl<=0), Redis expiry
        PRESENT -> PRESENT (new TTL)   clear_one(ttl>0)
    """

    def __init__(self, backend: KeyValueBackend, registry: FieldRegistry):
        self.backend = backend
        self.registry = registry

    def clear_one(self, entity_type: type, identifier: Any, name: str, ttl: int = 0) -> bool:
        """Delete a cached field (ttl <= 0) or extend its expiry (ttl > 0).

        Args:
            entity_type: Owning entity class
            identifier: Instance id, or the class-level sentinel
            name: Field name
            ttl: Seconds until expiry; zero or less deletes immediately

        Returns:
            False for an unregistered field or when a TTL could not be
            applied because the key is absent, True otherwise
        """
        if self.registry.lookup(entity_type, name) is None:
            logger.debug("Clear skipped for unregistered field",
                         entity=entity_key_name(entity_type), field=name)
            return False
        if identifier is None:
            return False

        key = key_for(entity_type, identifier, name)
        if ttl is None or ttl <= 0:
            self.backend.delete(key)
            return True

        if self.backend.expire(key, ttl):
            return True

        # Nothing to re-arm; an absent key is not rewritten.
        logger.debug("Expiry not applied, key absent", cache_key=key, ttl=ttl)
        return False

    def clear_all(self, entity_type: type, identifier: Any, ttl: int = 0) -> bool:
        """Apply clear_one to every field whose scope matches the identifier."""
        for spec in self.registry.fields(entity_type).values():
            if spec.scope_matches(identifier):
                self.clear_one(entity_type, identifier, spec.name, ttl)
        return True
