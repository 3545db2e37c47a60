"""
Catalog service: schema and record lifecycle on top of a record store.

The catalog is the seam between the pure core (validation, statistics) and a
storage backend. It validates submissions before anything is stored, returns
validation failures as data, and serves statistics from a per-schema cache
that is dropped whenever a record is created or deleted or the schema itself
is deleted.

Usage (example from CLI):
    from schemastats.catalog import Catalog, open_store

    catalog = Catalog(open_store("memory"))
    schema = catalog.create_schema("Survey", [{"name": "age", "type": "number"}])
    catalog.submit_record(schema.id, {"age": "42"})
    print(catalog.statistics(schema.id))
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from schemastats.config import get_settings
from schemastats.domain.errors import FieldFailure, SchemaDefinitionError
from schemastats.domain.fields import FieldDescriptor
from schemastats.domain.models import Record, Schema, SchemaBuilder
from schemastats.statistics import FieldSummary, compute_statistics
from schemastats.storage.abstract import RecordStore
from schemastats.storage.file_store import JsonFileStore
from schemastats.storage.memory import InMemoryStore
from schemastats.storage.postgres import PostgresStore
from schemastats.utils.logging import get_logger
from schemastats.validation import validate

log = get_logger(__name__)

FieldDefinition = Union[FieldDescriptor, Mapping[str, Any]]


@dataclass(frozen=True)
class Submission:
    """Result of submitting one record: the stored record or the failures."""

    record: Optional[Record] = None
    failures: Tuple[FieldFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return self.record is not None and not self.failures


@dataclass(frozen=True)
class RejectedRow:
    row_number: int
    failures: Tuple[FieldFailure, ...]


@dataclass
class ImportReport:
    """Outcome of a bulk import; rows are numbered from 1."""

    schema_id: str
    accepted: List[Record] = field(default_factory=list)
    rejected: List[RejectedRow] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.accepted) + len(self.rejected)


def _store_factories() -> Dict[str, Callable[[], RecordStore]]:
    """Registry of available storage backends."""
    settings = get_settings()
    return {
        "memory": lambda: InMemoryStore(),
        "file": lambda: JsonFileStore(settings.data_file),
        "postgres": lambda: PostgresStore(
            pool_min_size=settings.db_pool_min_size,
            pool_max_size=settings.db_pool_max_size,
        ),
    }


def available_backends() -> List[str]:
    """List available storage backend names."""
    return sorted(_store_factories().keys())


def open_store(name: Optional[str] = None) -> RecordStore:
    """Instantiate the named backend, defaulting to settings.storage_backend."""
    backend = name or get_settings().storage_backend
    factories = _store_factories()
    if backend not in factories:
        raise ValueError(f"Unknown storage backend '{backend}'. Available: {', '.join(factories)}")
    return factories[backend]()


def _error_messages(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


class Catalog:
    """
    Schema/record operations with validation and cached statistics.

    Parameters
    ----------
    store : RecordStore
        Source of truth for schemas and records.
    cache_statistics : bool | None
        Whether to cache statistics per schema. Defaults to
        settings.stats_cache_enabled.
    """

    def __init__(self, store: RecordStore, cache_statistics: Optional[bool] = None) -> None:
        self.store = store
        if cache_statistics is None:
            cache_statistics = get_settings().stats_cache_enabled
        self.cache_statistics = cache_statistics
        self._cache_lock = threading.Lock()
        self._stats_cache: Dict[str, Dict[str, FieldSummary]] = {}
        # Bumped on every invalidation so a computation that raced with any
        # record change is never cached.
        self._generation = 0

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def create_schema(self, name: str, fields: Iterable[FieldDefinition]) -> Schema:
        """
        Build and persist a schema.

        Raises
        ------
        SchemaDefinitionError
            With every problem found in the name or the field list.
        """
        problems: List[str] = []
        descriptors: List[FieldDescriptor] = []
        for position, definition in enumerate(fields, start=1):
            if isinstance(definition, FieldDescriptor):
                descriptors.append(definition)
                continue
            try:
                descriptors.append(FieldDescriptor.model_validate(definition))
            except ValidationError as exc:
                problems.extend(f"field #{position}: {msg}" for msg in _error_messages(exc))
        if problems:
            raise SchemaDefinitionError(problems)

        try:
            schema = SchemaBuilder(name).extend(descriptors).build()
        except ValidationError as exc:
            raise SchemaDefinitionError(_error_messages(exc)) from exc

        self.store.save_schema(schema)
        log.info(
            f"[SCHEMA CREATED] {schema.name}",
            extra={"schema_id": schema.id, "fields": schema.field_names},
        )
        return schema

    def get_schema(self, schema_id: str) -> Schema:
        return self.store.get_schema(schema_id)

    def list_schemas(self) -> List[Schema]:
        return self.store.list_schemas()

    def delete_schema(self, schema_id: str) -> int:
        removed = self.store.delete_schema(schema_id)
        self.invalidate(schema_id)
        log.info(
            "[SCHEMA DELETED]",
            extra={"schema_id": schema_id, "records_removed": removed},
        )
        return removed

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def submit_record(self, schema_id: str, raw_data: Optional[Mapping[str, Any]]) -> Submission:
        """
        Validate a raw payload and store it when every field passes.

        Raises
        ------
        UnknownSchemaError
            If `schema_id` does not resolve.
        """
        schema = self.store.get_schema(schema_id)
        result = validate(schema, raw_data)
        if not result.ok:
            log.info(
                "[RECORD REJECTED]",
                extra={
                    "schema_id": schema_id,
                    "failures": [f"{f.field_name}:{f.reason.value}" for f in result.failures],
                },
            )
            return Submission(failures=result.failures)

        record = self.store.add_record(Record(schema_id=schema.id, data=result.data))
        self.invalidate(schema_id)
        log.info("[RECORD STORED]", extra={"schema_id": schema_id, "record_id": record.id})
        return Submission(record=record)

    def import_rows(
        self, schema_id: str, rows: Iterable[Optional[Mapping[str, Any]]]
    ) -> ImportReport:
        """
        Validate and store many rows; each row stands or falls on its own.
        """
        schema = self.store.get_schema(schema_id)
        report = ImportReport(schema_id=schema_id)

        for row_number, raw in enumerate(rows, start=1):
            result = validate(schema, raw)
            if result.ok:
                report.accepted.append(
                    self.store.add_record(Record(schema_id=schema.id, data=result.data))
                )
            else:
                report.rejected.append(RejectedRow(row_number=row_number, failures=result.failures))

        if report.accepted:
            self.invalidate(schema_id)
        log.info(
            "[IMPORT COMPLETE]",
            extra={
                "schema_id": schema_id,
                "accepted": len(report.accepted),
                "rejected": len(report.rejected),
            },
        )
        return report

    def get_record(self, record_id: str) -> Record:
        return self.store.get_record(record_id)

    def list_records(self, schema_id: str) -> List[Record]:
        return self.store.list_records(schema_id)

    def delete_record(self, record_id: str) -> Record:
        record = self.store.delete_record(record_id)
        self.invalidate(record.schema_id)
        log.info(
            "[RECORD DELETED]",
            extra={"schema_id": record.schema_id, "record_id": record_id},
        )
        return record

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def invalidate(self, schema_id: str) -> None:
        """Drop cached statistics for a schema."""
        with self._cache_lock:
            self._stats_cache.pop(schema_id, None)
            self._generation += 1

    def statistics(self, schema_id: str) -> Dict[str, FieldSummary]:
        """
        Summaries of every numeric field of a schema with usable data.

        Raises
        ------
        UnknownSchemaError
            If `schema_id` does not resolve.
        """
        with self._cache_lock:
            cached = self._stats_cache.get(schema_id)
            generation = self._generation
        if cached is not None:
            log.debug("Statistics served from cache", extra={"schema_id": schema_id})
            return dict(cached)

        schema = self.store.get_schema(schema_id)
        records = self.store.list_records(schema_id)
        summaries = compute_statistics(schema, records)
        log.info(
            "[STATISTICS COMPUTED]",
            extra={
                "schema_id": schema_id,
                "records": len(records),
                "fields": list(summaries),
            },
        )

        if self.cache_statistics:
            with self._cache_lock:
                if self._generation == generation:
                    self._stats_cache[schema_id] = summaries
        return dict(summaries)

    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "Catalog":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "Catalog",
    "ImportReport",
    "RejectedRow",
    "Submission",
    "available_backends",
    "open_store",
]
