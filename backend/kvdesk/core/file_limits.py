"""File Limits: upload size check and link builders for stored files.

Invariants:
    - MAX_FILE_SIZE (25 MiB) matches the Workers KV per-value limit
    - Links are built from the request origin, never from configuration
"""

from urllib.parse import quote


MAX_FILE_SIZE: int = 25 * 1024 * 1024


def check_file_size(size: int | None, limit: int = MAX_FILE_SIZE) -> bool:
    """True when an upload of `size` bytes fits in one value."""
    if size is None:
        return False
    return 0 <= size <= limit


def download_url(origin: str, file_name: str) -> str:
    return f"{origin.rstrip('/')}/api/download?file={quote(file_name, safe='')}"


def preview_url(origin: str, store: str, file_name: str) -> str:
    return (
        f"{origin.rstrip('/')}/{quote(store, safe='')}"
        f"/static/{quote(file_name, safe='')}"
    )
