"""Entry Routes: get/add/update/delete/list over the namespace in the 'kv' header.

Invariants:
    - Every route is guarded by method → bearer token → 'kv' header
    - Binary (STREAM) values are never returned inline; the placeholder is
    - add on an existing key → 409 (KeyExistsError)
"""

import logging

from fastapi import Depends, Query

from kvdesk.api.route_table import RouteConfig, json_body, resolve_controller
from kvdesk.core.domain_types import (
    STREAM_PREVIEW_PLACEHOLDER, Entry, EntryKey, ValueType,
)
from kvdesk.core.errors import BadRequestError, ResourceNotFoundError
from kvdesk.core.route_guards import store_guard
from kvdesk.core.store_protocols import PutOptions
from kvdesk.schemas.kv import (
    EntryData, KeyRequest, KeysRequest, KeyValueRequest, success,
)
from kvdesk.services.kv_controller import KVController

logger = logging.getLogger(__name__)


def _entry_data(entry: Entry) -> EntryData:
    value = entry.value
    if entry.value_type == ValueType.STREAM:
        value = STREAM_PREVIEW_PLACEHOLDER
    return EntryData(key=entry.key, value=value, value_type=entry.value_type)


async def _stored_entry(controller: KVController, key: EntryKey) -> EntryData:
    entry = await controller.get_item(key)
    if entry is None:
        raise ResourceNotFoundError("Key", key)
    return _entry_data(entry)


async def get_entry(
    key: str | None = Query(None),
    controller: KVController = Depends(resolve_controller),
):
    if not key:
        raise BadRequestError("KEY Not Found")
    return success(await _stored_entry(controller, EntryKey(key)))


async def add_entry(
    controller: KVController = Depends(resolve_controller),
    body: KeyValueRequest = Depends(json_body(KeyValueRequest)),
):
    key = EntryKey(body.key)
    await controller.add_item(
        key, body.value, PutOptions(expiration_ttl=body.expiration_ttl),
    )
    return success(await _stored_entry(controller, key))


async def update_entry(
    controller: KVController = Depends(resolve_controller),
    body: KeyValueRequest = Depends(json_body(KeyValueRequest)),
):
    key = EntryKey(body.key)
    await controller.update_item(
        key, body.value, PutOptions(expiration_ttl=body.expiration_ttl),
    )
    return success(await _stored_entry(controller, key))


async def delete_entry(
    controller: KVController = Depends(resolve_controller),
    body: KeyRequest = Depends(json_body(KeyRequest)),
):
    await controller.delete_item(EntryKey(body.key))
    return success()


async def delete_entries(
    controller: KVController = Depends(resolve_controller),
    body: KeysRequest = Depends(json_body(KeysRequest)),
):
    await controller.delete_items([EntryKey(k) for k in body.keys])
    return success({"deleted": len(body.keys)})


async def clear_entries(controller: KVController = Depends(resolve_controller)):
    """Delete every key in the selected namespace."""
    deleted = await controller.clear()
    return success({"deleted": deleted})


async def list_entries(controller: KVController = Depends(resolve_controller)):
    entries = await controller.get_all()
    return success([_entry_data(entry) for entry in entries])


async def list_keys(controller: KVController = Depends(resolve_controller)):
    return success(await controller.get_keys())


ROUTES = [
    RouteConfig(
        "/api/get", get_entry, methods=("GET",),
        guard=store_guard("GET"), name="get_entry", tags=["entries"],
    ),
    RouteConfig(
        "/api/add", add_entry, methods=("POST",),
        guard=store_guard("POST"), name="add_entry", tags=["entries"],
    ),
    RouteConfig(
        "/api/update", update_entry, methods=("POST",),
        guard=store_guard("POST"), name="update_entry", tags=["entries"],
    ),
    RouteConfig(
        "/api/delete", delete_entry, methods=("POST",),
        guard=store_guard("POST"), name="delete_entry", tags=["entries"],
    ),
    RouteConfig(
        "/api/deleteMany", delete_entries, methods=("POST",),
        guard=store_guard("POST"), name="delete_entries", tags=["entries"],
    ),
    RouteConfig(
        "/api/clear", clear_entries, methods=("POST",),
        guard=store_guard("POST"), name="clear_entries", tags=["entries"],
    ),
    RouteConfig(
        "/api/getList", list_entries, methods=("GET",),
        guard=store_guard("GET"), name="list_entries", tags=["entries"],
    ),
    RouteConfig(
        "/api/getKvKeys", list_keys, methods=("GET",),
        guard=store_guard("GET"), name="list_keys", tags=["entries"],
    ),
]
