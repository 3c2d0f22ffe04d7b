"""Application Configuration: environment-driven settings via pydantic-settings.

Invariants:
    - All secrets (AUTH_TOKEN, CLOUDFLARE_API_TOKEN) come from environment variables
    - get_settings() is cached (lru_cache): single instance per process
    - kv_namespaces keeps insertion order: it is the order of /api/getKvList

Design Decisions:
    - KV_NAMESPACES is a JSON object {binding: namespace_id}; the binding is what
      clients send in the 'kv' header
    - KV_KEYS (newline-separated binding names) still accepted; with the memory
      backend those names need no namespace id
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kvdesk.core.file_limits import MAX_FILE_SIZE


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Auth
    auth_token: str = ""

    # Key-value backend
    kv_backend: Literal["cloudflare", "memory"] = "cloudflare"
    kv_namespaces: dict[str, str] = {}
    kv_keys: str = ""

    # Cloudflare
    cloudflare_account_id: str = ""
    cloudflare_api_token: str = ""
    cloudflare_api_base: str = "https://api.cloudflare.com/client/v4"
    kv_request_timeout_seconds: float = 30.0

    # Uploads
    max_file_size: int = MAX_FILE_SIZE

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("cloudflare_api_base", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @model_validator(mode="after")
    def merge_kv_keys(self) -> "Settings":
        """Bindings listed only in KV_KEYS are added with their name as id."""
        for line in self.kv_keys.splitlines():
            name = line.strip()
            if name and name not in self.kv_namespaces:
                self.kv_namespaces[name] = name
        return self

    def store_names(self) -> list[str]:
        return list(self.kv_namespaces)


@lru_cache
def get_settings() -> Settings:
    return Settings()
