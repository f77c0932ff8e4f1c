"""Value serialization for cached fields.

Custom hooks run first. A failing hook never loses a value: the failure is
logged and counted, and the default JSON path is used instead.
"""

import json
import re
import threading
from datetime import date, datetime
from typing import Any, Optional, Tuple

from fieldcache.constants import ISO_TIMESTAMP_PATTERN, TIME_STORE_FORMAT, TIME_STORE_FORMAT_NAIVE
from fieldcache.core.exceptions import SerializationFailure
from fieldcache.core.logging import get_logger
from fieldcache.models.field import FieldSpec, ParseHook, StoreHook

logger = get_logger(__name__)

_ISO_TIMESTAMP = re.compile(ISO_TIMESTAMP_PATTERN)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


def parse_stored_time(raw: str) -> Optional[datetime]:
    """Parse a value written by the time store hook. JSON null is an unset time."""
    raw = raw.strip()
    if raw == "null":
        return None
    if raw.startswith('"'):
        raw = json.loads(raw)
    try:
        return datetime.strptime(raw, TIME_STORE_FORMAT)
    except ValueError:
        return datetime.strptime(raw, TIME_STORE_FORMAT_NAIVE)


def store_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(TIME_STORE_FORMAT)


def time_hooks() -> Tuple[ParseHook, StoreHook]:
    """Parse/store pair installed by the ``time`` field option."""
    return parse_stored_time, store_time


def looks_like_timestamp(value: Any) -> bool:
    return isinstance(value, str) and _ISO_TIMESTAMP.match(value) is not None


class Serializer:
    """Encodes producer output for Redis and decodes it back."""

    def __init__(self):
        self.fallbacks = 0
        self._lock = threading.Lock()

    def encode(self, value: Any, spec: FieldSpec) -> str:
        """Encode a value into its stored string form.

        Store hook output is JSON-encoded like any other value, so a parse hook
        always receives JSON text.
        """
        if spec.store:
            try:
                stored = self._run_hook(spec, "store", spec.store, value)
            except SerializationFailure as e:
                self._record_fallback(e)
            else:
                return self.default_encode(stored)
        return self.default_encode(value)

    def decode(self, raw: Optional[str], spec: FieldSpec) -> Any:
        """Decode a stored string. None (missing key) decodes to None."""
        if raw is None:
            return None
        if spec.parse:
            try:
                return self._run_hook(spec, "parse", spec.parse, raw)
            except SerializationFailure as e:
                self._record_fallback(e)
        return self.default_decode(raw)

    @staticmethod
    def default_encode(value: Any) -> str:
        return json.dumps(value, default=_json_default)

    @staticmethod
    def default_decode(raw: str) -> Any:
        """JSON decode, then turn ISO-8601-shaped strings into datetimes.

        Values that are not valid JSON are returned as stored.
        """
        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return raw
        if looks_like_timestamp(value):
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                return value
        return value

    @staticmethod
    def _run_hook(spec: FieldSpec, hook: str, fn, value: Any) -> Any:
        try:
            return fn(value)
        except Exception as e:
            raise SerializationFailure(spec.name, hook, e) from e

    def _record_fallback(self, error: SerializationFailure) -> None:
        with self._lock:
            self.fallbacks += 1
        logger.warning("cache_%s_hook_failed" % error.hook, field=error.field_name,
                       error=str(error.cause))
