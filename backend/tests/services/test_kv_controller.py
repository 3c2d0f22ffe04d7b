"""KV Controller: store primitives, value typing and error mapping.

Invariants:
    - add refuses duplicates, update overwrites and keeps metadata
    - clear removes every key the namespace lists
    - Store failures surface as StoreOperationError with the original message

Design Decisions:
    - InMemoryKVNamespace as the store: same contract as the Cloudflare client,
      no network; failures injected through a subclass
"""

import pytest

from kvdesk.core.domain_types import STREAM_PREVIEW_PLACEHOLDER, ValueType
from kvdesk.core.errors import (
    BadRequestError, KeyExistsError, StoreNotFoundError, StoreOperationError,
)
from kvdesk.core.store_protocols import KVNamespace, PutOptions
from kvdesk.infrastructure.memory_kv import InMemoryKVNamespace
from kvdesk.services.kv_controller import ItemSpec, KVController


class _BrokenNamespace(InMemoryKVNamespace):
    async def list_keys(self, prefix=None):
        raise RuntimeError("KV list failed: 10001 service unavailable")

    async def get(self, key):
        raise RuntimeError("KV read failed")

    async def get_with_metadata(self, key):
        raise RuntimeError("KV read failed")


@pytest.fixture
def namespace():
    return InMemoryKVNamespace("NOTES")


@pytest.fixture
def controller(namespace):
    return KVController(namespace, "NOTES")


def test_memory_namespace_satisfies_protocol(namespace):
    assert isinstance(namespace, KVNamespace)


def test_missing_namespace_raises_store_not_found():
    with pytest.raises(StoreNotFoundError):
        KVController(None, "NOPE")


# ─── add ─────────────────────────────────────────────────────────

async def test_add_item_stores_text_with_value_type(controller, namespace):
    await controller.add_item("greeting", "hello")
    value, metadata = await namespace.get_with_metadata("greeting")
    assert value == b"hello"
    assert metadata == {"valueType": "TEXT"}


async def test_add_item_fails_on_duplicate_key(controller):
    await controller.add_item("greeting", "hello")
    with pytest.raises(KeyExistsError):
        await controller.add_item("greeting", "again")


async def test_add_item_duplicate_leaves_original_value(controller):
    await controller.add_item("greeting", "hello")
    with pytest.raises(KeyExistsError):
        await controller.add_item("greeting", "again")
    entry = await controller.get_item("greeting")
    assert entry.value == "hello"


async def test_add_item_forwards_metadata_and_ttl(controller, namespace):
    await controller.add_item(
        "k", "v", PutOptions(metadata={"owner": "ops"}, expiration_ttl=120),
    )
    _, metadata = await namespace.get_with_metadata("k")
    assert metadata == {"owner": "ops", "valueType": "TEXT"}
    assert namespace._data["k"].expires_at is not None


async def test_add_items_adds_in_order(controller):
    await controller.add_items([ItemSpec("a", "1"), ItemSpec("b", b"\x00")])
    assert await controller.get_keys() == ["a", "b"]
    entry = await controller.get_item("b")
    assert entry.value_type == ValueType.STREAM


async def test_add_items_rejects_empty_list(controller):
    with pytest.raises(BadRequestError):
        await controller.add_items([])


async def test_add_items_keeps_items_before_a_duplicate(controller):
    await controller.add_item("b", "existing")
    with pytest.raises(KeyExistsError):
        await controller.add_items([ItemSpec("a", "1"), ItemSpec("b", "2")])
    assert await controller.has_key("a")


# ─── update ──────────────────────────────────────────────────────

async def test_update_item_creates_missing_key(controller):
    await controller.update_item("new", "value")
    entry = await controller.get_item("new")
    assert entry.value == "value"
    assert entry.value_type == ValueType.TEXT


async def test_update_item_keeps_existing_metadata(controller, namespace):
    await namespace.put("k", "v1", metadata={"owner": "ops", "valueType": "TEXT"})
    await controller.update_item("k", "v2")
    value, metadata = await namespace.get_with_metadata("k")
    assert value == b"v2"
    assert metadata == {"owner": "ops", "valueType": "TEXT"}


async def test_update_item_retags_binary_value(controller, namespace):
    await controller.add_item("doc", "text first")
    await controller.update_item("doc", b"%PDF-1.7")
    _, metadata = await namespace.get_with_metadata("doc")
    assert metadata["valueType"] == "STREAM"


# ─── get ─────────────────────────────────────────────────────────

async def test_get_item_missing_returns_none(controller):
    assert await controller.get_item("nothing") is None


async def test_get_item_decodes_text(controller):
    await controller.add_item("greeting", "héllo")
    entry = await controller.get_item("greeting")
    assert entry.value == "héllo"


async def test_get_item_keeps_stream_as_bytes(controller):
    await controller.update_item("bin", b"\x89PNG")
    entry = await controller.get_item("bin")
    assert entry.value == b"\x89PNG"
    assert entry.value_type == ValueType.STREAM


async def test_get_item_as_bytes_for_text(controller):
    await controller.add_item("greeting", "hello")
    entry = await controller.get_item("greeting", as_bytes=True)
    assert entry.value == b"hello"


async def test_get_item_untagged_value_is_text(controller, namespace):
    await namespace.put("legacy", "plain")
    entry = await controller.get_item("legacy")
    assert entry.value_type == ValueType.TEXT
    assert entry.value == "plain"


# ─── delete / clear ──────────────────────────────────────────────

async def test_delete_item(controller):
    await controller.add_item("a", "1")
    await controller.delete_item("a")
    assert not await controller.has_key("a")


async def test_delete_missing_item_is_noop(controller):
    await controller.delete_item("never-there")


async def test_delete_items_rejects_empty_list(controller):
    with pytest.raises(BadRequestError):
        await controller.delete_items([])


async def test_delete_items_removes_only_given_keys(controller):
    for key in ("a", "b", "c"):
        await controller.add_item(key, key)
    await controller.delete_items(["a", "c"])
    assert await controller.get_keys() == ["b"]


async def test_clear_removes_every_listed_key(controller):
    for i in range(25):
        await controller.add_item(f"key-{i:02d}", str(i))
    deleted = await controller.clear()
    assert deleted == 25
    assert await controller.get_keys() == []


async def test_clear_on_empty_namespace(controller):
    assert await controller.clear() == 0


# ─── listing ─────────────────────────────────────────────────────

async def test_get_all_hides_binary_content(controller):
    await controller.add_item("note", "hi")
    await controller.update_item("photo.png", b"\x89PNG")
    entries = {e.key: e for e in await controller.get_all()}
    assert entries["note"].value == "hi"
    assert entries["photo.png"].value == STREAM_PREVIEW_PLACEHOLDER
    assert entries["photo.png"].value_type == ValueType.STREAM


async def test_get_keys_sorted(controller):
    await controller.add_item("b", "2")
    await controller.add_item("a", "1")
    assert await controller.get_keys() == ["a", "b"]


async def test_has_key(controller):
    assert not await controller.has_key("a")
    await controller.add_item("a", "1")
    assert await controller.has_key("a")


# ─── error mapping ───────────────────────────────────────────────

async def test_store_failure_becomes_store_operation_error():
    controller = KVController(_BrokenNamespace(), "NOTES")
    with pytest.raises(StoreOperationError) as exc_info:
        await controller.get_keys()
    assert exc_info.value.message == "KV list failed: 10001 service unavailable"
    assert exc_info.value.operation == "list"


async def test_store_failure_during_add_is_wrapped():
    controller = KVController(_BrokenNamespace(), "NOTES")
    with pytest.raises(StoreOperationError):
        await controller.add_item("a", "1")


async def test_store_failure_during_get_is_wrapped():
    controller = KVController(_BrokenNamespace(), "NOTES")
    with pytest.raises(StoreOperationError) as exc_info:
        await controller.get_item("a")
    assert exc_info.value.message == "KV read failed"


class _UnlistableNamespace(InMemoryKVNamespace):
    async def list_keys(self, prefix=None):
        raise RuntimeError("KV list failed")


async def test_add_item_checks_existence_without_listing():
    namespace = _UnlistableNamespace("NOTES")
    controller = KVController(namespace, "NOTES")
    await controller.add_item("a", "1")
    with pytest.raises(KeyExistsError):
        await controller.add_item("a", "2")
    assert await namespace.get("a") == b"1"
