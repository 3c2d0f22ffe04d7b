"""File Routes: upload/download of files stored as STREAM values.

Invariants:
    - The file name is the key; uploading an existing name overwrites it
    - Uploads above max_file_size → 400 before anything is written; the declared
      part size is checked before the content is read
    - Download always returns raw bytes as application/octet-stream attachment
    - Preview (/{store}/static/{file}) is GET-only and carries no bearer check,
      so it serves STREAM entries only: TEXT or untagged keys → 404

Design Decisions:
    - Upload goes through update_item, so metadata already on the key survives
"""

import logging
import mimetypes
from urllib.parse import quote

from fastapi import Depends, Query, Request
from fastapi.responses import Response
from starlette.datastructures import FormData, UploadFile

from kvdesk.api.route_table import RouteConfig, resolve_controller, upload_form
from kvdesk.config import Settings, get_settings
from kvdesk.core.domain_types import EntryKey, StoreName, ValueType
from kvdesk.core.errors import BadRequestError, ResourceNotFoundError
from kvdesk.core.file_limits import check_file_size, download_url, preview_url
from kvdesk.core.route_guards import STORE_SELECTOR_HEADER, method_only, store_guard
from kvdesk.infrastructure.kv_registry import KVRegistry, get_registry
from kvdesk.schemas.kv import UploadData, success
from kvdesk.services.kv_controller import KVController

logger = logging.getLogger(__name__)

STREAM_MEDIA_TYPE = "application/octet-stream"
UPLOAD_FIELD = "file"


def _content_disposition(kind: str, file_name: str) -> str:
    return f"{kind}; filename*=UTF-8''{quote(file_name, safe='')}"


def _too_large(size: int, limit: int) -> BadRequestError:
    return BadRequestError(
        f"File size is too large (max {limit}), Your upload size is {size}",
    )


async def _file_bytes(controller: KVController, file_name: str) -> bytes:
    entry = await controller.get_item(EntryKey(file_name), as_bytes=True)
    if entry is None or entry.value is None:
        raise ResourceNotFoundError("File", file_name)
    return entry.value


async def upload_file(
    request: Request,
    controller: KVController = Depends(resolve_controller),
    settings: Settings = Depends(get_settings),
    form: FormData = Depends(upload_form),
):
    """Store an uploaded file under its own name."""
    file = form.get(UPLOAD_FIELD)
    if not isinstance(file, UploadFile):
        raise BadRequestError("File is required")
    if not file.filename:
        raise BadRequestError("File name is required")

    limit = settings.max_file_size
    if file.size is not None and not check_file_size(file.size, limit):
        raise _too_large(file.size, limit)
    content = await file.read()
    if not check_file_size(len(content), limit):
        raise _too_large(len(content), limit)

    key = EntryKey(file.filename)
    await controller.update_item(key, content)
    logger.info(
        f"File uploaded ({len(content)} bytes)",
        extra={"store": controller.store, "key": key},
    )

    origin = f"{request.url.scheme}://{request.url.netloc}"
    store = request.headers.get(STORE_SELECTOR_HEADER, "")
    return success(UploadData(
        file_name=key,
        size=len(content),
        download=download_url(origin, key),
        preview=preview_url(origin, store, key),
    ))


async def download_file(
    file: str | None = Query(None),
    controller: KVController = Depends(resolve_controller),
):
    if not file:
        raise BadRequestError("File name is required")
    content = await _file_bytes(controller, file)
    return Response(
        content=content,
        media_type=STREAM_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition("attachment", file)},
    )


async def preview_file(
    store: str,
    file_name: str,
    registry: KVRegistry = Depends(get_registry),
):
    """Serve an uploaded file inline with a media type guessed from its name."""
    controller = KVController(registry.namespace(store), StoreName(store))
    entry = await controller.get_item(EntryKey(file_name), as_bytes=True)
    if entry is None or entry.value_type != ValueType.STREAM:
        raise ResourceNotFoundError("File", file_name)
    media_type, _ = mimetypes.guess_type(file_name)
    return Response(
        content=entry.value,
        media_type=media_type or STREAM_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition("inline", file_name)},
    )


ROUTES = [
    RouteConfig(
        "/api/upload", upload_file, methods=("POST",),
        guard=store_guard("POST"), name="upload_file", tags=["files"],
    ),
    RouteConfig(
        "/api/download", download_file, methods=("GET",),
        guard=store_guard("GET"), name="download_file",
        response_class=Response, tags=["files"],
    ),
    RouteConfig(
        "/{store}/static/{file_name:path}", preview_file, methods=("GET",),
        guard=method_only("GET"), name="preview_file",
        response_class=Response, tags=["files"],
    ),
]
