"""Example FastAPI application with servicewatch observability.

Run with:
    SERVICEWATCH_ENV=development uvicorn examples.fastapi_example:app --reload

Endpoints:
    /health        - runs the database and cache checks (200 or 503)
    /health/live   - liveness only, no dependencies touched
    /customers/{customer_id}/points - timed fake query
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from servicewatch import Observability
from servicewatch.adapters.checks import SQLiteDatastore, register_default_checks
from servicewatch.adapters.frameworks.asgi import ASGIObservabilityMiddleware
from servicewatch.adapters.frameworks.fastapi import create_health_router
from servicewatch.adapters.storage.in_memory import InMemoryCache

observability = Observability.from_env()
register_default_checks(
    observability.health,
    datastore=SQLiteDatastore("example.db"),
    cache=InMemoryCache(),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    async with observability:
        yield


api = FastAPI(title="servicewatch example", lifespan=lifespan)
api.include_router(
    create_health_router(
        observability.health,
        observability.settings.version,
        observability.settings.environment,
    )
)


@api.get("/customers/{customer_id}/points")
async def customer_points(customer_id: str, shop: str = "demo-shop") -> dict:
    async def load_points() -> int:
        await asyncio.sleep(0.01)
        return 120

    points = await observability.performance.measure_query(
        "loadPoints", load_points, {"shopId": shop, "customerId": customer_id}
    )
    observability.track_business_metric("points_viewed", points, {"shopId": shop})
    return {"customerId": customer_id, "points": points}


# Wrap the whole app so every request is logged, counted and timed
app = ASGIObservabilityMiddleware(
    api,
    observability.logger,
    observability.metrics,
    observability.performance,
    exclude_paths=["/health*"],
)
