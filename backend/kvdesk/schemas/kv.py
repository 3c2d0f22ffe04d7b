"""KV Schemas: request bodies and response envelope for the KV routes.

Invariants:
    - key fields are non-blank, at most 512 UTF-8 bytes, and never rewritten;
      value fields are non-empty
    - Every JSON success response is ServiceResponse {code, message, data}

Design Decisions:
    - Body field names follow the wire format used by the web client
      (fileName, valueType) via aliases, Python side stays snake_case
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kvdesk.core.domain_types import ValueType


class ServiceResponse(BaseModel):
    """Success envelope shared by all JSON routes."""
    code: int = 200
    message: str = "success"
    data: Any = None


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, list):
        return [_dump(item) for item in data]
    return data


def success(data: Any = None, message: str = "success") -> dict:
    return ServiceResponse(data=_dump(data), message=message).model_dump(mode="json")


# ─── Requests ────────────────────────────────────────────────────

class TokenVerifyRequest(BaseModel):
    """Body of /api/verifyToken. A missing token is checked by the handler."""
    token: str | None = None


MAX_KEY_BYTES = 512


class KeyRequest(BaseModel):
    key: str = Field(min_length=1)

    @field_validator("key")
    @classmethod
    def check_key(cls, v: str) -> str:
        """Reject blank or oversized keys; a valid key is kept exactly as sent."""
        if not v.strip():
            raise ValueError("key cannot be empty or whitespace")
        if len(v.encode("utf-8")) > MAX_KEY_BYTES:
            raise ValueError(f"key cannot exceed {MAX_KEY_BYTES} bytes")
        return v


class KeyValueRequest(KeyRequest):
    value: str = Field(min_length=1)
    expiration_ttl: int | None = Field(None, ge=60)


class KeysRequest(BaseModel):
    keys: list[str]


# ─── Responses ───────────────────────────────────────────────────

class StoreOption(BaseModel):
    label: str
    value: str


class EntryData(BaseModel):
    """An entry as shown to the client."""
    model_config = ConfigDict(populate_by_name=True)

    key: str
    value: str | None
    value_type: ValueType = Field(serialization_alias="valueType")


class UploadData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(serialization_alias="fileName")
    size: int
    download: str
    preview: str
