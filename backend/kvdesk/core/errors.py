"""Error Hierarchy: typed, categorized exceptions for all KVDesk failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Request errors (400-level) are recoverable; store errors (500-level) are critical
    - StoreOperationError keeps the message of the failure it wraps
    - to_response() produces the REST error envelope

Design Decisions:
    - Single hierarchy with KVDeskError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    ROUTING = "routing"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    store: str | None = None
    key: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class KVDeskError(Exception):
    """Base exception for all KVDesk errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "code": self.http_status,
            "message": self.message,
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "store": self.context.store,
                    "key": self.context.key,
                    "operation": self.context.operation,
                },
            },
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class BadRequestError(KVDeskError):
    """Request is missing something the handler needs."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "BAD_REQUEST", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class UnauthorizedError(KVDeskError):
    """Bearer token missing or not matching AUTH_TOKEN."""
    def __init__(
        self, message: str = "Unauthorized", context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class MethodNotAllowedError(KVDeskError):
    """Route guard rejected the HTTP method."""
    def __init__(self, method: str, path: str, context: ErrorContext | None = None):
        super().__init__(
            f"Method {method} not allowed on {path}",
            "METHOD_NOT_ALLOWED", ErrorCategory.ROUTING,
            ErrorSeverity.WARNING, context, 405,
        )
        self.method = method


class StoreNotSelectedError(KVDeskError):
    """No store selector header, or no stores configured at all."""
    def __init__(
        self,
        message: str = "KV store not selected, set the 'kv' header",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "STORE_NOT_SELECTED", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class StoreNotFoundError(KVDeskError):
    """Store selector names a binding that is not configured."""
    def __init__(self, store: str | None, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.store = store
        super().__init__(
            f"KV namespace '{store}' not found",
            "STORE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class ResourceNotFoundError(KVDeskError):
    """Requested key or file does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.key = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class KeyExistsError(KVDeskError):
    """Add attempted on a key that is already stored."""
    def __init__(self, key: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.key = key
        super().__init__(
            f"Key {key} already exists",
            "KEY_EXISTS", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )


# ─── Store Errors (500-level) ───────────────────────────────────

class StoreOperationError(KVDeskError):
    """The external key-value service failed."""
    def __init__(
        self,
        message: str,
        operation: str = "unknown",
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            message, "STORE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.operation = operation
        self.status_code = status_code
