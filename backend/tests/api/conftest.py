"""API test fixtures: memory-backed registry + FastAPI test client.

Invariants:
    - Every test gets fresh in-memory namespaces (NOTES, FILES)
    - get_settings and get_registry dependencies overridden per test
    - kv_registry singleton patched for the readiness probe, which reads it directly
"""

import pytest
from httpx import ASGITransport, AsyncClient

import kvdesk.infrastructure.kv_registry as kv_module
from kvdesk.config import Settings, get_settings
from kvdesk.infrastructure.kv_registry import KVRegistry, get_registry
from kvdesk.main import app

AUTH_TOKEN = "test-token"


@pytest.fixture
def settings():
    return Settings(
        auth_token=AUTH_TOKEN,
        kv_backend="memory",
        kv_namespaces={"NOTES": "notes-id", "FILES": "files-id"},
        kv_keys="",
        max_file_size=1024,
        _env_file=None,
    )


@pytest.fixture
def registry(settings):
    return KVRegistry.from_settings(settings)


@pytest.fixture
async def client(settings, registry):
    """FastAPI test client with settings and registry overridden."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_registry] = lambda: registry

    original_registry = kv_module.kv_registry
    kv_module.kv_registry = registry

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    kv_module.kv_registry = original_registry


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {AUTH_TOKEN}", "kv": "NOTES"}
