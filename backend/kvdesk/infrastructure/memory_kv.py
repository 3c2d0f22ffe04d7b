"""In-Memory Namespace: dict-backed KVNamespace for local development and tests.

Invariants:
    - Values are stored as bytes (str encoded UTF-8), like the remote store
    - Expired entries are dropped lazily on read/list
    - list_keys returns keys in lexicographic order, like Workers KV
"""

import time
from dataclasses import dataclass

from kvdesk.core.domain_types import StoredValue


@dataclass
class _Stored:
    value: bytes
    metadata: dict | None
    expires_at: float | None


class InMemoryKVNamespace:
    """Process-local namespace. State lives as long as the object."""

    def __init__(self, name: str = "memory"):
        self.name = name
        self._data: dict[str, _Stored] = {}

    def _live(self, key: str) -> _Stored | None:
        stored = self._data.get(key)
        if stored is None:
            return None
        if stored.expires_at is not None and stored.expires_at <= time.time():
            del self._data[key]
            return None
        return stored

    async def get(self, key: str) -> bytes | None:
        stored = self._live(key)
        return stored.value if stored else None

    async def get_with_metadata(
        self, key: str,
    ) -> tuple[bytes | None, dict | None]:
        stored = self._live(key)
        if stored is None:
            return None, None
        return stored.value, dict(stored.metadata) if stored.metadata else None

    async def put(
        self,
        key: str,
        value: StoredValue,
        *,
        metadata: dict | None = None,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
    ) -> None:
        expires_at = None
        if expiration_ttl is not None:
            expires_at = time.time() + expiration_ttl
        elif expiration is not None:
            expires_at = float(expiration)
        body = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        self._data[key] = _Stored(body, dict(metadata) if metadata else None, expires_at)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        return sorted(
            key for key in list(self._data)
            if self._live(key) and (not prefix or key.startswith(prefix))
        )
