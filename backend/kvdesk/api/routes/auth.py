"""Auth Routes: index page and token verification.

Invariants:
    - /api/verifyToken accepts POST only and needs no bearer header
    - Missing token → 400, wrong token → 401
"""

import hmac
import logging

from fastapi import Depends, Request
from fastapi.responses import HTMLResponse

from kvdesk.api.route_table import RouteConfig, json_body
from kvdesk.config import Settings, get_settings
from kvdesk.core.errors import BadRequestError, UnauthorizedError
from kvdesk.core.route_guards import method_only
from kvdesk.schemas.kv import TokenVerifyRequest, success

logger = logging.getLogger(__name__)


async def index(request: Request):
    """Echo the request URL; the web client is served separately."""
    return HTMLResponse(
        str(request.url),
        headers={
            "Cache-Control": "public, max-age=86400",
            "Access-Control-Allow-Origin": "*",
        },
    )


async def verify_token(
    body: TokenVerifyRequest = Depends(json_body(TokenVerifyRequest)),
    settings: Settings = Depends(get_settings),
):
    """Check a token against AUTH_TOKEN without using it as a bearer."""
    if not body.token:
        raise BadRequestError(
            'Token Not Found, It is likely { "token": "Your_AUTH_TOKEN" }',
        )
    if not settings.auth_token or not hmac.compare_digest(
        body.token.encode("utf-8"), settings.auth_token.encode("utf-8"),
    ):
        raise UnauthorizedError()
    return success(message="AUTH_TOKEN is correct")


ROUTES = [
    RouteConfig(
        "/", index, methods=("GET",), name="index",
        response_class=HTMLResponse,
    ),
    RouteConfig(
        "/api/verifyToken", verify_token, methods=("POST",),
        guard=method_only("POST"), name="verify_token", tags=["auth"],
    ),
]
