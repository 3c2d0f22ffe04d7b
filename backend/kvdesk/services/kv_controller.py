"""KV Controller: store primitives plus value-type tagging, over one namespace.

Invariants:
    - add_item refuses existing keys (read-then-write, NOT atomic across writers);
      existence is a single get, not a key listing
    - Every write stores {"valueType": TEXT|STREAM} matching the written value
    - update_item keeps existing metadata fields, only valueType is recomputed
    - Non-KVDesk failures are re-raised as StoreOperationError with the original message
    - Bulk operations have no rollback: a failure leaves earlier items applied

Design Decisions:
    - add_items/delete_items run sequentially, clear runs deletes concurrently
      (asyncio.gather): clear has no per-item ordering to preserve
    - get_all hides binary content behind STREAM_PREVIEW_PLACEHOLDER
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from kvdesk.core.domain_types import (
    STREAM_PREVIEW_PLACEHOLDER, VALUE_TYPE_METADATA_KEY, EntryKey, StoreName,
    Entry, StoredValue, ValueType, value_type_for, value_type_from_metadata,
)
from kvdesk.core.errors import (
    BadRequestError, KeyExistsError, KVDeskError, StoreNotFoundError,
    StoreOperationError,
)
from kvdesk.core.store_protocols import KVNamespace, PutOptions

logger = logging.getLogger(__name__)


@dataclass
class ItemSpec:
    """One item for add_items."""
    key: EntryKey
    value: StoredValue
    options: PutOptions = field(default_factory=PutOptions)


def _decode(raw: bytes | None, value_type: ValueType) -> str | bytes | None:
    if raw is None or value_type == ValueType.STREAM:
        return raw
    return raw.decode("utf-8", errors="replace")


class KVController:
    """CRUD over a single KVNamespace."""

    def __init__(
        self, namespace: KVNamespace | None, store: StoreName | None = None,
    ):
        if namespace is None:
            raise StoreNotFoundError(store)
        self.kv = namespace
        self.store = store

    @asynccontextmanager
    async def _operation(self, name: str, key: EntryKey | None = None):
        """Map unexpected failures to StoreOperationError."""
        try:
            yield
        except KVDeskError:
            raise
        except Exception as e:
            logger.error(
                f"KV {name} failed: {e}",
                extra={"store": self.store, "key": key, "operation": name},
            )
            raise StoreOperationError(str(e), name) from e

    async def has_key(self, key: EntryKey) -> bool:
        async with self._operation("get", key):
            return await self.kv.get(key) is not None

    async def add_item(
        self, key: EntryKey, value: StoredValue, options: PutOptions | None = None,
    ) -> None:
        """Store a new key. Raises KeyExistsError if it is already present."""
        options = options or PutOptions()
        async with self._operation("add", key):
            if await self.has_key(key):
                raise KeyExistsError(key)
            metadata = {
                **options.metadata,
                VALUE_TYPE_METADATA_KEY: value_type_for(value).value,
            }
            await self.kv.put(
                key, value,
                metadata=metadata,
                expiration=options.expiration,
                expiration_ttl=options.expiration_ttl,
            )
        logger.info("Item added", extra={"store": self.store, "key": key})

    async def add_items(self, items: list[ItemSpec]) -> None:
        if not items:
            raise BadRequestError("No items to add")
        for item in items:
            await self.add_item(item.key, item.value, item.options)

    async def update_item(
        self, key: EntryKey, value: StoredValue, options: PutOptions | None = None,
    ) -> None:
        """Write a key, creating it if needed, keeping its previous metadata."""
        options = options or PutOptions()
        async with self._operation("update", key):
            _, existing = await self.kv.get_with_metadata(key)
            metadata = {
                **(existing or {}),
                **options.metadata,
                VALUE_TYPE_METADATA_KEY: value_type_for(value).value,
            }
            await self.kv.put(
                key, value,
                metadata=metadata,
                expiration=options.expiration,
                expiration_ttl=options.expiration_ttl,
            )
        logger.info("Item updated", extra={"store": self.store, "key": key})

    async def get_item(self, key: EntryKey, as_bytes: bool = False) -> Entry | None:
        """Fetch one entry. TEXT decodes to str unless as_bytes is set."""
        async with self._operation("get", key):
            raw, metadata = await self.kv.get_with_metadata(key)
        if raw is None:
            return None
        value_type = value_type_from_metadata(metadata)
        value = raw if as_bytes else _decode(raw, value_type)
        return Entry(key=key, value=value, value_type=value_type)

    async def delete_item(self, key: EntryKey) -> None:
        async with self._operation("delete", key):
            await self.kv.delete(key)
        logger.info("Item deleted", extra={"store": self.store, "key": key})

    async def delete_items(self, keys: list[EntryKey]) -> None:
        if not keys:
            raise BadRequestError("No keys to delete")
        for key in keys:
            await self.delete_item(key)

    async def clear(self) -> int:
        """Delete every key in the namespace. Returns how many were deleted."""
        async with self._operation("clear"):
            keys = await self.kv.list_keys()
            await asyncio.gather(*(self.kv.delete(key) for key in keys))
        logger.info(
            f"Namespace cleared ({len(keys)} keys)",
            extra={"store": self.store, "operation": "clear"},
        )
        return len(keys)

    async def get_all(self) -> list[Entry]:
        """Every entry, with binary content replaced by a placeholder."""
        result: list[Entry] = []
        async with self._operation("get_all"):
            keys = await self.kv.list_keys()
            for key in keys:
                raw, metadata = await self.kv.get_with_metadata(key)
                value_type = value_type_from_metadata(metadata)
                if value_type == ValueType.TEXT:
                    value = _decode(raw, value_type)
                else:
                    value = STREAM_PREVIEW_PLACEHOLDER
                result.append(Entry(key=key, value=value, value_type=value_type))
        return result

    async def get_keys(self) -> list[EntryKey]:
        async with self._operation("list"):
            return await self.kv.list_keys()
