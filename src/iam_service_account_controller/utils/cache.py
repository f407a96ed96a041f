"""Local cache of watched Kubernetes objects.

The cache is the controller's view of desired state. It is written only by
the watch handlers and read by reconciliation workers.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Mapping

from .errors import InvalidKeyError


def make_cache_key(namespace: str, name: str) -> str:
    """Create the ``namespace/name`` key of a namespaced object."""
    return f"{namespace}/{name}"


def key_for_object(obj: Mapping[str, Any]) -> str:
    """Create the cache key of an object from its metadata.

    Raises:
        InvalidKeyError: If the object has no name or namespace
    """
    meta = obj.get("metadata") or {}
    namespace = meta.get("namespace")
    name = meta.get("name")
    if not namespace or not name:
        raise InvalidKeyError(f"Object has no namespace/name: {meta!r}")
    return make_cache_key(namespace, name)


def split_key(key: Any) -> tuple[str, str]:
    """Split a ``namespace/name`` key.

    Raises:
        InvalidKeyError: If the key is not a string of exactly two non-empty parts
    """
    if not isinstance(key, str):
        raise InvalidKeyError(f"Expected string key but got {key!r}")
    parts = key.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise InvalidKeyError(f"Invalid resource key: {key}")
    return parts[0], parts[1]


class ObjectCache:
    """Thread-safe store of objects keyed by ``namespace/name``."""

    def __init__(self) -> None:
        self._objects: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    def upsert(self, obj: Mapping[str, Any]) -> str:
        """Store a copy of an object and return its key."""
        key = key_for_object(obj)
        with self._lock:
            self._objects[key] = copy.deepcopy(dict(obj))
        return key

    def remove(self, obj: Mapping[str, Any]) -> str:
        """Drop an object and return its key."""
        key = key_for_object(obj)
        with self._lock:
            self._objects.pop(key, None)
        return key

    def get(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Return the cached object, or None if it is not (or no longer) present."""
        with self._lock:
            obj = self._objects.get(make_cache_key(namespace, name))
            return copy.deepcopy(obj) if obj is not None else None

    def get_by_key(self, key: str) -> dict[str, Any] | None:
        namespace, name = split_key(key)
        return self.get(namespace, name)

    def list(self) -> list[dict[str, Any]]:
        """Return copies of all cached objects."""
        with self._lock:
            return [copy.deepcopy(obj) for obj in self._objects.values()]

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._objects)

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)
