"""
PostgreSQL connection plumbing for the `postgres` storage backend.

Pools are created through `open_pool` and the process-wide pool for the
configured database is owned by `PoolManager`, which closes it at exit.
Transient connection failures (server restarting, network blips) are retried
with tenacity via the shared `retry_transient` policy.
"""

from __future__ import annotations

import atexit
import threading
from typing import Optional

import psycopg
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from schemastats.config import Settings, get_settings
from schemastats.utils.logging import get_logger

log = get_logger(__name__)

TRANSIENT_ERRORS = (psycopg.OperationalError, psycopg.InterfaceError)

retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(TRANSIENT_ERRORS),
    reraise=True,
)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose the connection string of the configured database."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def open_pool(conninfo: str, min_size: Optional[int] = None, max_size: Optional[int] = None) -> ConnectionPool:
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=conninfo,
        min_size=min_size or settings.db_pool_min_size,
        max_size=max_size or settings.db_pool_max_size,
        open=True,
    )
    log.debug("Connection pool opened", extra={"min_size": pool.min_size, "max_size": pool.max_size})
    return pool


class PoolManager:
    """
    Process-wide owner of the pool for the configured database.

    A singleton; the pool is opened lazily and closed by an atexit hook.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "PoolManager":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._pool = None
                atexit.register(instance.close)
                cls._instance = instance
            return cls._instance

    def get_pool(self, min_size: Optional[int] = None, max_size: Optional[int] = None) -> ConnectionPool:
        with self._lock:
            if self._pool is None:
                self._pool = open_pool(build_dsn(), min_size=min_size, max_size=max_size)
            return self._pool

    def close(self) -> None:
        with self._lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.close()
            log.debug("Connection pool closed")


def get_shared_pool(min_size: Optional[int] = None, max_size: Optional[int] = None) -> ConnectionPool:
    return PoolManager().get_pool(min_size=min_size, max_size=max_size)


@retry_transient
def check_connection(dsn: Optional[str] = None) -> str:
    """
    Open a dedicated connection, run a trivial query and return the server version.

    Raises
    ------
    psycopg.Error
        When the database stays unreachable after the retry policy gives up.
    """
    with psycopg.connect(dsn or build_dsn(), connect_timeout=5) as conn:
        conn.execute("SELECT 1")
        version = conn.info.server_version
    return f"{version // 10000}.{version % 10000}"


__all__ = [
    "PoolManager",
    "TRANSIENT_ERRORS",
    "build_dsn",
    "check_connection",
    "get_shared_pool",
    "open_pool",
    "retry_transient",
]
