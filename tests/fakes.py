"""Test doubles shared by the field cache tests."""

import threading
from typing import Dict, Optional, Tuple


class FakeRedis:
    """In-memory stand-in for the subset of redis.Redis the backend calls.

    Expiry runs on a manual clock so TTL tests never sleep.
    """

    def __init__(self):
        self.now = 0.0
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()
        self.calls = []
        self.closed = False

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _purge(self, key: str) -> None:
        entry = self._data.get(key)
        if entry and entry[1] is not None and entry[1] <= self.now:
            del self._data[key]

    def get(self, key):
        with self._lock:
            self.calls.append(("get", key))
            self._purge(key)
            entry = self._data.get(key)
            return entry[0] if entry else None

    def set(self, key, value):
        with self._lock:
            self.calls.append(("set", key))
            self._data[key] = (str(value), None)
            return True

    def delete(self, *keys):
        with self._lock:
            self.calls.append(("delete",) + keys)
            removed = 0
            for key in keys:
                self._purge(key)
                if self._data.pop(key, None) is not None:
                    removed += 1
            return removed

    def expire(self, key, seconds):
        with self._lock:
            self.calls.append(("expire", key, seconds))
            self._purge(key)
            if key not in self._data:
                return False
            if seconds <= 0:
                del self._data[key]
                return True
            self._data[key] = (self._data[key][0], self.now + seconds)
            return True

    def ttl(self, key):
        with self._lock:
            self._purge(key)
            if key not in self._data:
                return -2
            expires_at = self._data[key][1]
            if expires_at is None:
                return -1
            return int(expires_at - self.now)

    def ping(self):
        return True

    def close(self):
        self.closed = True

    def keys(self):
        with self._lock:
            for key in list(self._data):
                self._purge(key)
            return sorted(self._data)

    def raw(self, key):
        entry = self._data.get(key)
        return entry[0] if entry else None

    def flushall(self):
        with self._lock:
            self._data.clear()
            self.calls.clear()
            self.now = 0.0


class Ship:
    """Plain entity used where no ORM is needed."""

    def __init__(self, id, title="Apollo", crew=3):
        self.id = id
        self.title = title
        self.crew = crew
