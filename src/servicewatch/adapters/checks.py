"""Dependency health checks.

Factories returning async predicates for HealthChecker.register(), plus an
aiosqlite-backed datastore that the database check can probe.
"""

import uuid
from typing import Any

import aiosqlite

from servicewatch.core.health import HealthCheck, HealthChecker
from servicewatch.core.ports import CachePort, DatastorePort

PROBE_QUERY = "SELECT 1"
CACHE_PROBE_KEY = "health-check"
CACHE_PROBE_TTL = 10


def cache_check(
    cache: CachePort,
    key: str = CACHE_PROBE_KEY,
    ttl_seconds: int = CACHE_PROBE_TTL,
) -> HealthCheck:
    """Check that a value written to the cache can be read back.

    A unique token is written each run so a stale value from an earlier
    run cannot make the check pass.
    """

    async def check() -> bool:
        token = f"ok-{uuid.uuid4().hex}"
        await cache.set(key, token, ttl_seconds)
        return await cache.get(key) == token

    return check


def datastore_check(datastore: DatastorePort, query: str = PROBE_QUERY) -> HealthCheck:
    """Check that the datastore answers a trivial probe query."""

    async def check() -> bool:
        await datastore.execute(query)
        return True

    return check


def register_default_checks(
    checker: HealthChecker,
    *,
    datastore: DatastorePort | None = None,
    cache: CachePort | None = None,
) -> None:
    """Register the standard "database" and "redis" checks.

    Only the checks whose collaborator is given are registered.
    """
    if datastore is not None:
        checker.register("database", datastore_check(datastore))
    if cache is not None:
        checker.register("redis", cache_check(cache))


class SQLiteDatastore:
    """DatastorePort implementation over an SQLite database file.

    Opens a short-lived aiosqlite connection per query.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def execute(self, query: str) -> list[Any]:
        """Run a query and return all rows."""
        async with aiosqlite.connect(self._db_path) as db:
            async with db.execute(query) as cursor:
                return list(await cursor.fetchall())
