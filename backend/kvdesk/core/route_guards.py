"""Route Entry Guards: pure checks run before a route handler is entered.

Invariants:
    - Guards are PURE: they return an EntryDecision, they never raise or do IO
    - Checks run in order method → token → store; the first rejection wins
    - An unset AUTH_TOKEN rejects every token check (fail closed)
    - Token comparison is constant-time (hmac.compare_digest)

Design Decisions:
    - Guard is a plain callable (check, enter) -> EntryDecision so every route
      declares its own composition in the route table
    - Shell (api/route_table.py) maps a rejection reason to an HTTP error
"""

import hmac
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


BEARER_PREFIX = "Bearer "
STORE_SELECTOR_HEADER = "kv"


class RejectReason(str, Enum):
    """Why a guard refused entry."""
    METHOD = "method"
    TOKEN = "token"
    STORE = "store"


@dataclass(frozen=True)
class EntryDecision:
    """Outcome of a guard: accepted, or rejected with a reason."""
    accepted: bool
    reason: RejectReason | None = None


class CheckEnter:
    """Decision constructors handed to every guard."""

    @staticmethod
    def accept_enter() -> EntryDecision:
        return EntryDecision(accepted=True)

    @staticmethod
    def reject_method_enter() -> EntryDecision:
        return EntryDecision(accepted=False, reason=RejectReason.METHOD)

    @staticmethod
    def reject_token_enter() -> EntryDecision:
        return EntryDecision(accepted=False, reason=RejectReason.TOKEN)

    @staticmethod
    def reject_not_kv_enter() -> EntryDecision:
        return EntryDecision(accepted=False, reason=RejectReason.STORE)


@dataclass(frozen=True)
class RouteCheck:
    """Request facts a guard may inspect. Built by the shell per request."""
    request_method: str
    authorization: str | None = None
    store_selector: str | None = None
    auth_token: str | None = None
    configured_stores: tuple[str, ...] = field(default_factory=tuple)

    def method(self, expected: str) -> bool:
        return self.request_method.upper() == expected.upper()

    def bearer_token(self) -> str | None:
        """Token from the Authorization header, or None if absent/malformed."""
        if not self.authorization:
            return None
        if not self.authorization.startswith(BEARER_PREFIX):
            return None
        return self.authorization[len(BEARER_PREFIX):].strip() or None

    def token(self) -> bool:
        provided = self.bearer_token()
        if not provided or not self.auth_token:
            return False
        return hmac.compare_digest(
            provided.encode("utf-8"), self.auth_token.encode("utf-8"),
        )

    def store_selected(self) -> bool:
        return bool(self.store_selector and self.store_selector.strip())

    def stores_configured(self) -> bool:
        return len(self.configured_stores) > 0


Guard = Callable[[RouteCheck, type[CheckEnter]], EntryDecision]


def method_only(method: str) -> Guard:
    """Only the HTTP method is checked."""
    def guard(check: RouteCheck, enter: type[CheckEnter]) -> EntryDecision:
        if not check.method(method):
            return enter.reject_method_enter()
        return enter.accept_enter()
    return guard


def store_guard(method: str) -> Guard:
    """Method, then bearer token, then the store selector header."""
    def guard(check: RouteCheck, enter: type[CheckEnter]) -> EntryDecision:
        if not check.method(method):
            return enter.reject_method_enter()
        if not check.token():
            return enter.reject_token_enter()
        if not check.store_selected():
            return enter.reject_not_kv_enter()
        return enter.accept_enter()
    return guard


def store_list_guard(method: str) -> Guard:
    """Method, then bearer token, then at least one configured store."""
    def guard(check: RouteCheck, enter: type[CheckEnter]) -> EntryDecision:
        if not check.method(method):
            return enter.reject_method_enter()
        if not check.token():
            return enter.reject_token_enter()
        if not check.stores_configured():
            return enter.reject_not_kv_enter()
        return enter.accept_enter()
    return guard


def evaluate(guard: Guard | None, check: RouteCheck) -> EntryDecision:
    """Run a guard; routes without one are always entered."""
    if guard is None:
        return CheckEnter.accept_enter()
    return guard(check, CheckEnter)
