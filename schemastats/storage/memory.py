"""
In-memory record store.

Keeps schemas and records in insertion-ordered dicts guarded by a lock. Used
by tests, by one-off scripts, and as the base of the JSON file store.
"""

from __future__ import annotations

import threading
from typing import Dict, List

from schemastats.domain.errors import UnknownRecordError, UnknownSchemaError
from schemastats.domain.models import Record, Schema
from schemastats.storage.abstract import AbstractRecordStore


class InMemoryStore(AbstractRecordStore):
    """Process-local store; contents vanish with the process."""

    name: str = "memory"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._schemas: Dict[str, Schema] = {}
        self._records: Dict[str, Record] = {}

    def save_schema(self, schema: Schema) -> Schema:
        with self._lock:
            self._schemas[schema.id] = schema
        return schema

    def get_schema(self, schema_id: str) -> Schema:
        with self._lock:
            try:
                return self._schemas[schema_id]
            except KeyError:
                raise UnknownSchemaError(schema_id) from None

    def list_schemas(self) -> List[Schema]:
        with self._lock:
            return list(self._schemas.values())

    def delete_schema(self, schema_id: str) -> int:
        with self._lock:
            if schema_id not in self._schemas:
                raise UnknownSchemaError(schema_id)
            doomed = [rid for rid, rec in self._records.items() if rec.schema_id == schema_id]
            for record_id in doomed:
                del self._records[record_id]
            del self._schemas[schema_id]
            return len(doomed)

    def add_record(self, record: Record) -> Record:
        with self._lock:
            if record.schema_id not in self._schemas:
                raise UnknownSchemaError(record.schema_id)
            self._records[record.id] = record
        return record

    def get_record(self, record_id: str) -> Record:
        with self._lock:
            try:
                return self._records[record_id]
            except KeyError:
                raise UnknownRecordError(record_id) from None

    def list_records(self, schema_id: str) -> List[Record]:
        with self._lock:
            if schema_id not in self._schemas:
                raise UnknownSchemaError(schema_id)
            return [rec for rec in self._records.values() if rec.schema_id == schema_id]

    def delete_record(self, record_id: str) -> Record:
        with self._lock:
            try:
                return self._records.pop(record_id)
            except KeyError:
                raise UnknownRecordError(record_id) from None


__all__ = ["InMemoryStore"]
