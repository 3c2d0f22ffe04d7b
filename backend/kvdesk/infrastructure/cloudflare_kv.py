"""Cloudflare Workers KV Client: KVNamespace over the Cloudflare REST API.

Invariants:
    - One shared httpx.AsyncClient per process (owned by KVRegistry)
    - Keys are percent-encoded into the path (slashes included)
    - 404 on a read → None; every other failure → StoreOperationError
    - list_keys follows result_info.cursor until exhausted
    - No retries: a failed call fails the request

Design Decisions:
    - Writes use the multipart form of the values endpoint: the only form that
      carries metadata alongside the value
"""

import json
import logging
from urllib.parse import quote

import httpx

from kvdesk.core.domain_types import StoredValue
from kvdesk.core.errors import StoreOperationError

logger = logging.getLogger(__name__)

LIST_PAGE_LIMIT = 1000


def _api_error_message(response: httpx.Response) -> str:
    """First error message from a Cloudflare error envelope, or the status line."""
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if errors:
        first = errors[0]
        return f"{first.get('message', 'unknown error')} (code {first.get('code')})"
    return f"HTTP {response.status_code}"


class CloudflareKVNamespace:
    """One Workers KV namespace, addressed through the account-scoped API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        account_id: str,
        namespace_id: str,
        name: str | None = None,
    ):
        self.client = client
        self.account_id = account_id
        self.namespace_id = namespace_id
        self.name = name or namespace_id
        self._base = (
            f"/accounts/{account_id}/storage/kv/namespaces/{namespace_id}"
        )

    def _key_path(self, kind: str, key: str) -> str:
        return f"{self._base}/{kind}/{quote(key, safe='')}"

    async def _request(
        self, operation: str, method: str, url: str, **kwargs,
    ) -> httpx.Response:
        """Send a request; transport errors become StoreOperationError."""
        try:
            return await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(
                f"KV {operation} timed out: {e}",
                extra={"store": self.name, "operation": operation},
            )
            raise StoreOperationError(
                f"KV {operation} timed out", operation,
            )
        except httpx.HTTPError as e:
            logger.error(
                f"KV {operation} transport error: {e}",
                extra={"store": self.name, "operation": operation},
            )
            raise StoreOperationError(str(e) or type(e).__name__, operation)

    def _raise_for_status(self, operation: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = _api_error_message(response)
        logger.error(
            f"KV {operation} failed: {message}",
            extra={
                "store": self.name,
                "operation": operation,
                "status_code": response.status_code,
            },
        )
        raise StoreOperationError(message, operation, response.status_code)

    async def get(self, key: str) -> bytes | None:
        response = await self._request("get", "GET", self._key_path("values", key))
        if response.status_code == 404:
            return None
        self._raise_for_status("get", response)
        return response.content

    async def get_metadata(self, key: str) -> dict | None:
        response = await self._request(
            "get_metadata", "GET", self._key_path("metadata", key),
        )
        if response.status_code == 404:
            return None
        self._raise_for_status("get_metadata", response)
        result = response.json().get("result")
        return result if isinstance(result, dict) else None

    async def get_with_metadata(
        self, key: str,
    ) -> tuple[bytes | None, dict | None]:
        value = await self.get(key)
        if value is None:
            return None, None
        return value, await self.get_metadata(key)

    async def put(
        self,
        key: str,
        value: StoredValue,
        *,
        metadata: dict | None = None,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
    ) -> None:
        params = {}
        if expiration is not None:
            params["expiration"] = str(expiration)
        if expiration_ttl is not None:
            params["expiration_ttl"] = str(expiration_ttl)

        body = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        files = {
            "value": (None, body, "application/octet-stream"),
            "metadata": (None, json.dumps(metadata or {}), "application/json"),
        }
        response = await self._request(
            "put", "PUT", self._key_path("values", key),
            params=params, files=files,
        )
        self._raise_for_status("put", response)

    async def delete(self, key: str) -> None:
        response = await self._request(
            "delete", "DELETE", self._key_path("values", key),
        )
        self._raise_for_status("delete", response)

    async def list_keys(self, prefix: str | None = None) -> list[str]:
        names: list[str] = []
        cursor: str | None = None
        while True:
            params: dict[str, str | int] = {"limit": LIST_PAGE_LIMIT}
            if prefix:
                params["prefix"] = prefix
            if cursor:
                params["cursor"] = cursor
            response = await self._request(
                "list", "GET", f"{self._base}/keys", params=params,
            )
            self._raise_for_status("list", response)
            payload = response.json()
            names.extend(item["name"] for item in payload.get("result") or [])
            cursor = (payload.get("result_info") or {}).get("cursor")
            if not cursor:
                return names


def create_http_client(
    api_base: str, api_token: str, timeout_seconds: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Client authenticated against the Cloudflare API."""
    return httpx.AsyncClient(
        base_url=api_base,
        headers={"Authorization": f"Bearer {api_token}"},
        timeout=timeout_seconds,
        transport=transport,
    )
