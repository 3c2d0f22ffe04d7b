"""Route Table: static RouteConfig list turned into a FastAPI router.

Invariants:
    - Every route answers all standard methods; the guard decides, not FastAPI,
      so a wrong method yields the guard's 405 (first rejection wins)
    - The guard dependency runs before the body is read: bodies are parsed by
      json_body/upload_form dependencies, never by FastAPI ahead of the guard
    - RejectReason → error: METHOD → 405, TOKEN → 401, STORE → 400
    - Only the route's own methods appear in the OpenAPI schema

Design Decisions:
    - Guards stay pure in core/route_guards.py; this module is the shell that
      reads headers/settings and raises KVDeskError subclasses
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ValidationError

from kvdesk.config import Settings, get_settings
from kvdesk.core.errors import (
    ErrorContext, MethodNotAllowedError, StoreNotSelectedError,
    UnauthorizedError,
)
from kvdesk.core.route_guards import (
    STORE_SELECTOR_HEADER, Guard, RejectReason, RouteCheck, evaluate,
)
from kvdesk.infrastructure.kv_registry import KVRegistry, get_registry
from kvdesk.services.kv_controller import KVController

logger = logging.getLogger(__name__)

ALL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


@dataclass
class RouteConfig:
    """One entry of the static route table."""
    path: str
    endpoint: Callable[..., Any]
    methods: tuple[str, ...] = ("GET",)
    guard: Guard | None = None
    name: str | None = None
    response_class: type[Response] = JSONResponse
    tags: list[str] = field(default_factory=list)


def build_route_check(request: Request, settings: Settings) -> RouteCheck:
    return RouteCheck(
        request_method=request.method,
        authorization=request.headers.get("authorization"),
        store_selector=request.headers.get(STORE_SELECTOR_HEADER),
        auth_token=settings.auth_token,
        configured_stores=tuple(settings.store_names()),
    )


def entry_dependency(guard: Guard) -> Callable[..., Any]:
    """Wrap a pure guard as a FastAPI dependency that raises on rejection."""

    async def check_entry(
        request: Request, settings: Settings = Depends(get_settings),
    ) -> None:
        check = build_route_check(request, settings)
        decision = evaluate(guard, check)
        if decision.accepted:
            return

        path = request.url.path
        logger.warning(
            f"Entry rejected on {path}: {decision.reason.value}",
            extra={"path": path, "method": request.method},
        )
        ctx = ErrorContext(store=check.store_selector)
        if decision.reason == RejectReason.METHOD:
            raise MethodNotAllowedError(request.method, path, ctx)
        if decision.reason == RejectReason.TOKEN:
            raise UnauthorizedError(context=ctx)
        if not check.stores_configured():
            raise StoreNotSelectedError("No KV namespaces configured", ctx)
        raise StoreNotSelectedError(context=ctx)

    return check_entry


def resolve_controller(
    request: Request, registry: KVRegistry = Depends(get_registry),
) -> KVController:
    """KVController for the namespace named by the 'kv' header."""
    store = request.headers.get(STORE_SELECTOR_HEADER)
    return KVController(registry.namespace(store), store)


def json_body(model: type[BaseModel]) -> Callable[..., Any]:
    """Dependency parsing the JSON body into `model` once the guard has passed.

    Declared on the endpoint, so it always resolves after the route-level
    entry dependency; a malformed body cannot mask a 405 or 401.
    """

    async def parse_body(request: Request) -> BaseModel:
        raw = await request.body()
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            errors = [
                {**err, "loc": ("body", *err["loc"])}
                for err in e.errors(include_url=False)
            ]
            raise RequestValidationError(errors, body=raw) from e

    return parse_body


async def upload_form(request: Request):
    """Multipart form, read only after the guard; closed when the request ends."""
    async with request.form() as form:
        yield form


def build_router(routes: list[RouteConfig]) -> APIRouter:
    router = APIRouter()
    for route in routes:
        dependencies = [Depends(entry_dependency(route.guard))] if route.guard else []
        declared = [m.upper() for m in route.methods]
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=declared,
            dependencies=dependencies,
            name=route.name,
            response_class=route.response_class,
            tags=route.tags,
        )
        others = [m for m in ALL_METHODS if m not in declared]
        if others:
            router.add_api_route(
                route.path,
                route.endpoint,
                methods=others,
                dependencies=dependencies,
                name=f"{route.name or route.endpoint.__name__}_other_methods",
                response_class=route.response_class,
                include_in_schema=False,
            )
    return router
