"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - Every stored value is tagged TEXT or STREAM via the "valueType" metadata key
    - str values are TEXT; bytes-like values are STREAM
    - All valid value types encoded as Enums: no raw string matching

Design Decisions:
    - str Enum: serializes to JSON and to KV metadata without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType, Union


# ─── Identity Types ──────────────────────────────────────────────

StoreName = NewType("StoreName", str)
EntryKey = NewType("EntryKey", str)

StoredValue = Union[str, bytes, bytearray, memoryview]

VALUE_TYPE_METADATA_KEY = "valueType"
STREAM_PREVIEW_PLACEHOLDER = "Preview not supported, download the file to view it"


# ─── Enums ───────────────────────────────────────────────────────

class ValueType(str, Enum):
    """What kind of content a key holds."""
    TEXT = "TEXT"
    STREAM = "STREAM"


def value_type_for(value: StoredValue) -> ValueType:
    """Tag a value by its Python type. Pure."""
    if isinstance(value, str):
        return ValueType.TEXT
    return ValueType.STREAM


def value_type_from_metadata(metadata: dict | None) -> ValueType:
    """Read the tag back from metadata. Untagged entries count as TEXT."""
    raw = (metadata or {}).get(VALUE_TYPE_METADATA_KEY)
    try:
        return ValueType(raw) if raw else ValueType.TEXT
    except ValueError:
        return ValueType.TEXT


# ─── Entities ────────────────────────────────────────────────────

@dataclass
class Entry:
    """A key, its value and the value's type tag."""
    key: EntryKey
    value: str | bytes | None
    value_type: ValueType = ValueType.TEXT
