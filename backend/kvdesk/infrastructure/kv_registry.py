"""Namespace Registry: binding name → KVNamespace, with the shared HTTP client.

Invariants:
    - Singleton kv_registry initialized on startup, closed on shutdown (lifespan)
    - namespace(name) returns None for unknown bindings (caller decides the error)
    - names() preserves configuration order

Design Decisions:
    - Memory backend builds one InMemoryKVNamespace per binding; they share
      nothing, so each binding behaves like its own namespace
"""

import logging

import httpx

from kvdesk.config import Settings
from kvdesk.core.store_protocols import KVNamespace
from kvdesk.infrastructure.cloudflare_kv import (
    CloudflareKVNamespace, create_http_client,
)
from kvdesk.infrastructure.memory_kv import InMemoryKVNamespace

logger = logging.getLogger(__name__)


class KVRegistry:
    """Holds every configured namespace for the lifetime of the app."""

    def __init__(
        self,
        namespaces: dict[str, KVNamespace],
        client: httpx.AsyncClient | None = None,
    ):
        self._namespaces = dict(namespaces)
        self.client = client

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "KVRegistry":
        if settings.kv_backend == "memory":
            return cls({
                name: InMemoryKVNamespace(name)
                for name in settings.kv_namespaces
            })

        client = create_http_client(
            settings.cloudflare_api_base,
            settings.cloudflare_api_token,
            settings.kv_request_timeout_seconds,
            transport=transport,
        )
        return cls(
            {
                name: CloudflareKVNamespace(
                    client, settings.cloudflare_account_id, namespace_id, name,
                )
                for name, namespace_id in settings.kv_namespaces.items()
            },
            client,
        )

    def namespace(self, name: str | None) -> KVNamespace | None:
        if not name:
            return None
        return self._namespaces.get(name)

    def names(self) -> list[str]:
        return list(self._namespaces)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()


# Singleton (initialized on startup)
kv_registry: KVRegistry | None = None


def init_kv(settings: Settings, **kwargs) -> KVRegistry:
    global kv_registry
    kv_registry = KVRegistry.from_settings(settings, **kwargs)
    logger.info(
        f"KV registry ready with {len(kv_registry.names())} namespace(s)",
        extra={"operation": "init_kv"},
    )
    return kv_registry


async def close_kv() -> None:
    global kv_registry
    if kv_registry is not None:
        await kv_registry.close()
        kv_registry = None


def get_registry() -> KVRegistry:
    """FastAPI dependency for the namespace registry."""
    if not kv_registry:
        raise RuntimeError("KV registry not initialized")
    return kv_registry
