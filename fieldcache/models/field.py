"""Cached field metadata.

One FieldSpec exists per (entity type, field name). Specs are created when a
field is registered and never mutated afterwards; registering the same name
again replaces the FieldSpec.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Optional, Union

from fieldcache.constants import CLASS_LEVEL_ID

Producer = Callable[[Any], Any]
ParseHook = Callable[[str], Any]
StoreHook = Callable[[Any], Any]
TTL = Union[int, timedelta]


def normalize_ttl(ttl: Optional[TTL]) -> Optional[int]:
    """Convert a TTL to whole seconds. None means no expiry.

    Raises:
        ValueError: if the TTL is not positive
    """
    if ttl is None:
        return None
    if isinstance(ttl, timedelta):
        ttl = int(ttl.total_seconds())
    if isinstance(ttl, bool) or not isinstance(ttl, int):
        raise ValueError(f"TTL must be an int or timedelta, got {ttl!r}")
    if ttl <= 0:
        raise ValueError(f"TTL must be positive, got {ttl}")
    return ttl


@dataclass(frozen=True)
class FieldOptions:
    """Behaviour flags for a cached field."""
    no_auto: bool = False      # Never recompute on read miss
    class_level: bool = False  # One value per entity type, stored under the sentinel id
    time: bool = False         # Install the timestamp parse/store hooks


@dataclass(frozen=True)
class FieldSpec:
    """Registered cached field."""
    name: str
    producer: Producer
    default_ttl: Optional[int] = None
    parse: Optional[ParseHook] = None
    store: Optional[StoreHook] = None
    options: FieldOptions = field(default_factory=FieldOptions)

    @property
    def class_level(self) -> bool:
        return self.options.class_level

    @property
    def no_auto(self) -> bool:
        return self.options.no_auto

    def scope_matches(self, identifier: Any) -> bool:
        """Class-level specs own the sentinel identifier, instance specs the rest.

        Compared in key form: ``0`` and ``"0"`` both address ``<Type>_0_<field>``.
        """
        return self.class_level == (str(identifier) == str(CLASS_LEVEL_ID))


@dataclass(frozen=True)
class FieldAccessors:
    """Named convenience accessors bound to one cached field.

    Instance fields take the entity instance; class-level fields take the
    entity type.
    """
    name: str
    fetch: Callable[..., Any]
    expire: Callable[..., bool]
    clear: Callable[..., bool]
    set_ttl: Callable[..., None]
