"""Health & Readiness Probes: liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if no KV namespace is configured (readiness)
    - Probes never call the external store
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import kvdesk.infrastructure.kv_registry as kv_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "kvdesk-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check():
    """Readiness probe: the registry exists and holds at least one namespace."""
    registry = kv_module.kv_registry
    names = registry.names() if registry else []
    if not names:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "kv_namespaces_unavailable",
            },
        )
    return {"status": "ready", "checks": {"kv_namespaces": len(names)}}
