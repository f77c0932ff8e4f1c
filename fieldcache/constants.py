"""Centralized constants for cache key naming, time formats and connection defaults."""

from typing import FrozenSet

# =============================================================================
# KEY NAMING
# =============================================================================

# Identifier reserved for class-wide values not tied to any instance
CLASS_LEVEL_ID: int = 0

KEY_SEPARATOR: str = "_"

# =============================================================================
# SERIALIZATION
# =============================================================================

# Format written by the time=True store hook, e.g. "2024-05-01 10:30:00 GMT+0000"
TIME_STORE_FORMAT: str = "%Y-%m-%d %H:%M:%S GMT%z"

# Fallback parse format when the stored value carries no UTC offset
TIME_STORE_FORMAT_NAIVE: str = "%Y-%m-%d %H:%M:%S GMT"

# ISO-8601-like strings the default decoder turns back into datetimes
ISO_TIMESTAMP_PATTERN: str = (
    r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d{1,6})?)?"
    r"(Z|[+-]\d{2}:?\d{2})?$"
)

# =============================================================================
# CONNECTION
# =============================================================================

DEFAULT_REDIS_URL: str = "redis://localhost:6379"

REDIS_URL_SCHEMES: FrozenSet[str] = frozenset([
    'redis',
    'rediss',
])
