"""Boundary Protocols: contracts between the controller and namespace clients.

Invariants:
    - Controller NEVER imports a concrete client: only KVNamespace
    - get/get_with_metadata return None for missing keys (never raise)
    - list_keys returns every key, following pagination internally

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no base class
"""

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from kvdesk.core.domain_types import StoredValue


@dataclass
class PutOptions:
    """Options forwarded to a put. Expiration is absolute epoch seconds."""
    metadata: dict = field(default_factory=dict)
    expiration: int | None = None
    expiration_ttl: int | None = None


@runtime_checkable
class KVNamespace(Protocol):
    """Contract for one key-value namespace: implemented by infrastructure."""
    async def get(self, key: str) -> bytes | None: ...
    async def get_with_metadata(
        self, key: str,
    ) -> tuple[bytes | None, dict | None]: ...
    async def put(
        self,
        key: str,
        value: StoredValue,
        *,
        metadata: dict | None = None,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
    ) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def list_keys(self, prefix: str | None = None) -> list[str]: ...
