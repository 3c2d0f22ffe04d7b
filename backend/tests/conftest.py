"""Root conftest: shared test configuration."""

import os

# Ensure tests never reach the real Cloudflare API
os.environ.setdefault("AUTH_TOKEN", "test-token")
os.environ.setdefault("KV_BACKEND", "memory")
os.environ.setdefault("KV_NAMESPACES", '{"NOTES": "notes-id"}')
os.environ.setdefault("CLOUDFLARE_API_TOKEN", "cf-test-fake-token")
