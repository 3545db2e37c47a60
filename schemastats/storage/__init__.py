"""
Storage package for schema-stats.

Re-exports the store interfaces and the concrete backends so downstream code
can import from `schemastats.storage` directly.
"""

from schemastats.storage.abstract import AbstractRecordStore, RecordStore
from schemastats.storage.file_store import JsonFileStore
from schemastats.storage.memory import InMemoryStore
from schemastats.storage.postgres import PostgresStore

__all__ = [
    # Abstracts
    "AbstractRecordStore",
    "RecordStore",
    # Concrete stores
    "InMemoryStore",
    "JsonFileStore",
    "PostgresStore",
]
