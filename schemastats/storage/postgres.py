"""
PostgreSQL record store.

Schemas and records live in two tables with JSONB payloads; deleting a schema
cascades to its records in the database. Connections come from a psycopg
ConnectionPool (the shared one from db_factory, or a private pool when a DSN
override is given, e.g. in tests).
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from schemastats.domain.errors import StorageError, UnknownRecordError, UnknownSchemaError
from schemastats.domain.models import Record, Schema
from schemastats.storage.abstract import AbstractRecordStore
from schemastats.storage.db_factory import get_shared_pool, open_pool, retry_transient
from schemastats.utils.logging import get_logger

log = get_logger(__name__)

_DDL = """
CREATE TABLE IF NOT EXISTS schemastats_schemas (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    fields JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL
);
CREATE TABLE IF NOT EXISTS schemastats_records (
    id TEXT PRIMARY KEY,
    schema_id TEXT NOT NULL REFERENCES schemastats_schemas (id) ON DELETE CASCADE,
    data JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL
);
CREATE INDEX IF NOT EXISTS schemastats_records_schema_id_idx
    ON schemastats_records (schema_id);
"""


def _schema_from_row(row: Dict[str, Any]) -> Schema:
    return Schema.model_validate(
        {
            "id": row["id"],
            "name": row["name"],
            "fields": row["fields"],
            "created_at": row["created_at"],
        }
    )


def _record_from_row(row: Dict[str, Any]) -> Record:
    return Record.model_validate(
        {
            "id": row["id"],
            "schema_id": row["schema_id"],
            "data": row["data"],
            "created_at": row["created_at"],
        }
    )


class PostgresStore(AbstractRecordStore):
    """
    Record store backed by PostgreSQL through psycopg 3.
    """

    name: str = "postgres"

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        pool_min_size: Optional[int] = None,
        pool_max_size: Optional[int] = None,
    ) -> None:
        self._dsn_override = dsn_override
        self.pool_min_size = pool_min_size
        self.pool_max_size = pool_max_size
        self._pool_instance: ConnectionPool | None = None
        self._tables_ready = False
        self._init_lock = threading.Lock()

    def _get_pool(self) -> ConnectionPool:
        if self._pool_instance is not None:
            return self._pool_instance
        if self._dsn_override:
            self._pool_instance = open_pool(
                self._dsn_override, min_size=self.pool_min_size, max_size=self.pool_max_size
            )
        else:
            self._pool_instance = get_shared_pool(
                min_size=self.pool_min_size, max_size=self.pool_max_size
            )
        return self._pool_instance

    @retry_transient
    def _create_tables(self) -> None:
        with self._get_pool().connection() as conn:
            conn.execute(_DDL)

    def ensure_tables(self) -> None:
        """Create the tables on first use (idempotent)."""
        with self._init_lock:
            if self._tables_ready:
                return
            try:
                self._create_tables()
            except psycopg.Error as exc:
                raise StorageError(f"Cannot initialize PostgreSQL tables: {exc}") from exc
            self._tables_ready = True
            log.info("PostgreSQL tables ready")

    @contextmanager
    def _cursor(self) -> Generator[psycopg.Cursor, None, None]:
        self.ensure_tables()
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    yield cur
        except psycopg.Error as exc:
            raise StorageError(str(exc)) from exc

    def save_schema(self, schema: Schema) -> Schema:
        fields = [f.model_dump(mode="json") for f in schema.fields]
        with self._cursor() as cur:
            cur.execute(
                "INSERT INTO schemastats_schemas (id, name, fields, created_at) "
                "VALUES (%s, %s, %s, %s)",
                (schema.id, schema.name, Jsonb(fields), schema.created_at),
            )
        return schema

    def get_schema(self, schema_id: str) -> Schema:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM schemastats_schemas WHERE id = %s", (schema_id,))
            row = cur.fetchone()
        if row is None:
            raise UnknownSchemaError(schema_id)
        return _schema_from_row(row)

    def list_schemas(self) -> List[Schema]:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM schemastats_schemas ORDER BY created_at, id")
            rows = cur.fetchall()
        return [_schema_from_row(row) for row in rows]

    def delete_schema(self, schema_id: str) -> int:
        with self._cursor() as cur:
            cur.execute(
                "SELECT count(*) AS n FROM schemastats_records WHERE schema_id = %s",
                (schema_id,),
            )
            removed = cur.fetchone()["n"]
            cur.execute("DELETE FROM schemastats_schemas WHERE id = %s", (schema_id,))
            deleted = cur.rowcount
        if not deleted:
            raise UnknownSchemaError(schema_id)
        return int(removed)

    def add_record(self, record: Record) -> Record:
        payload = {name: value.model_dump(mode="json") for name, value in record.data.items()}
        try:
            with self._cursor() as cur:
                cur.execute(
                    "INSERT INTO schemastats_records (id, schema_id, data, created_at) "
                    "VALUES (%s, %s, %s, %s)",
                    (record.id, record.schema_id, Jsonb(payload), record.created_at),
                )
        except StorageError as exc:
            if isinstance(exc.__cause__, pg_errors.ForeignKeyViolation):
                raise UnknownSchemaError(record.schema_id) from None
            raise
        return record

    def get_record(self, record_id: str) -> Record:
        with self._cursor() as cur:
            cur.execute("SELECT * FROM schemastats_records WHERE id = %s", (record_id,))
            row = cur.fetchone()
        if row is None:
            raise UnknownRecordError(record_id)
        return _record_from_row(row)

    def list_records(self, schema_id: str) -> List[Record]:
        with self._cursor() as cur:
            cur.execute("SELECT 1 FROM schemastats_schemas WHERE id = %s", (schema_id,))
            if cur.fetchone() is None:
                raise UnknownSchemaError(schema_id)
            cur.execute(
                "SELECT * FROM schemastats_records WHERE schema_id = %s ORDER BY created_at, id",
                (schema_id,),
            )
            rows = cur.fetchall()
        return [_record_from_row(row) for row in rows]

    def delete_record(self, record_id: str) -> Record:
        with self._cursor() as cur:
            cur.execute(
                "DELETE FROM schemastats_records WHERE id = %s RETURNING *", (record_id,)
            )
            row = cur.fetchone()
        if row is None:
            raise UnknownRecordError(record_id)
        return _record_from_row(row)

    def close(self) -> None:
        # The shared pool belongs to PoolManager; only private pools are closed here.
        if self._pool_instance is not None and self._dsn_override:
            self._pool_instance.close()
        self._pool_instance = None


__all__ = ["PostgresStore"]
