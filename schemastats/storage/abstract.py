"""
Record store interfaces for schema-stats.

A store is the source of truth for schemas and records. The statistics engine
never reads a store directly: the catalog fetches a schema and its record set
and hands both over as immutable snapshots. Concrete stores (memory, JSON
file, PostgreSQL) implement the RecordStore protocol, usually by subclassing
AbstractRecordStore.
"""

from __future__ import annotations

import abc
from typing import List, Protocol, runtime_checkable

from schemastats.domain.models import Record, Schema


@runtime_checkable
class RecordStore(Protocol):
    """
    Common interface all record stores implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier of the backend.
    """

    name: str

    def save_schema(self, schema: Schema) -> Schema:
        """Persist a new schema and return it."""
        ...

    def get_schema(self, schema_id: str) -> Schema:
        """Return the schema or raise UnknownSchemaError."""
        ...

    def list_schemas(self) -> List[Schema]:
        """Return all schemas, oldest first."""
        ...

    def delete_schema(self, schema_id: str) -> int:
        """Delete a schema and its records; return the number of records removed."""
        ...

    def add_record(self, record: Record) -> Record:
        """Persist a record for an existing schema (UnknownSchemaError otherwise)."""
        ...

    def get_record(self, record_id: str) -> Record:
        """Return the record or raise UnknownRecordError."""
        ...

    def list_records(self, schema_id: str) -> List[Record]:
        """Return the records of a schema (UnknownSchemaError if it does not exist)."""
        ...

    def delete_record(self, record_id: str) -> Record:
        """Delete a record and return it (UnknownRecordError if it does not exist)."""
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...


class AbstractRecordStore(abc.ABC):
    """
    ABC helper for class-based store implementations.

    Subclasses set `name` and implement the abstract methods; `close` is a
    no-op by default.
    """

    name: str

    @abc.abstractmethod
    def save_schema(self, schema: Schema) -> Schema:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def get_schema(self, schema_id: str) -> Schema:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def list_schemas(self) -> List[Schema]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def delete_schema(self, schema_id: str) -> int:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def add_record(self, record: Record) -> Record:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def get_record(self, record_id: str) -> Record:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def list_records(self, schema_id: str) -> List[Record]:  # pragma: no cover - interface only
        raise NotImplementedError

    @abc.abstractmethod
    def delete_record(self, record_id: str) -> Record:  # pragma: no cover - interface only
        raise NotImplementedError

    def close(self) -> None:
        return None

    def __enter__(self) -> "AbstractRecordStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = [
    "RecordStore",
    "AbstractRecordStore",
]
