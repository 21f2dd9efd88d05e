"""FastAPI adapter for health endpoints."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from servicewatch.adapters.frameworks.asgi import liveness_payload
from servicewatch.core.health import HealthChecker
from servicewatch.core.models import Environment

_NO_CACHE = {"Cache-Control": "no-cache"}


def create_health_router(
    checker: HealthChecker,
    version: str = "1.0.0",
    environment: Environment = Environment.PRODUCTION,
) -> APIRouter:
    """Create a FastAPI router with /health and /health/live endpoints.

    Args:
        checker: HealthChecker whose checks back the /health endpoint.
        version: Service version reported by /health/live.
        environment: Environment reported by /health/live.

    Returns:
        APIRouter with the health endpoints configured.
    """
    router = APIRouter()

    @router.get("/health")
    async def get_health() -> JSONResponse:
        """Run all health checks; 200 when healthy, 503 otherwise."""
        report = await checker.run_checks()
        return JSONResponse(
            content=report.to_dict(),
            status_code=report.http_status,
            headers=_NO_CACHE,
        )

    @router.get("/health/live")
    async def get_liveness() -> JSONResponse:
        """Report that the process is up without touching dependencies."""
        return JSONResponse(
            content=liveness_payload(version, environment), headers=_NO_CACHE
        )

    return router
