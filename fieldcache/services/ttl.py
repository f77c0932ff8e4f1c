"""TTL resolution: per-instance override, then field default, then none."""

import threading
import weakref
from typing import Any, Dict, Optional

from fieldcache.models.field import TTL, FieldSpec, normalize_ttl


class TTLResolver:
    """Resolves the effective TTL for an (instance, field) pair.

    Overrides live in memory only and are dropped when the instance is
    garbage collected. They are never persisted.
    """

    def __init__(self):
        self._overrides: Dict[int, Dict[str, int]] = {}
        self._lock = threading.RLock()

    def set_override(self, instance: Any, name: str, ttl: TTL) -> None:
        """Override the TTL of one field for one instance."""
        ttl = normalize_ttl(ttl)
        key = id(instance)
        with self._lock:
            if key not in self._overrides:
                # Raises TypeError for objects that cannot be weakly referenced
                weakref.finalize(instance, self._release, key)
                self._overrides[key] = {}
            self._overrides[key][name] = ttl

    def clear_override(self, instance: Any, name: str) -> None:
        with self._lock:
            self._overrides.get(id(instance), {}).pop(name, None)

    def override_for(self, instance: Any, name: str) -> Optional[int]:
        return self._overrides.get(id(instance), {}).get(name)

    def resolve(self, instance: Optional[Any], spec: FieldSpec) -> Optional[int]:
        """Effective TTL in seconds, None when the key should not expire."""
        if instance is not None:
            override = self.override_for(instance, spec.name)
            if override is not None:
                return override
        return spec.default_ttl

    def _release(self, key: int) -> None:
        with self._lock:
            self._overrides.pop(key, None)

    def __len__(self) -> int:
        return len(self._overrides)

