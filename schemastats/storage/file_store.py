"""
JSON file record store.

Same semantics as InMemoryStore, but the whole catalog is written to a single
JSON document after every mutation so the CLI keeps its data between runs.

Layout of the document:
    {
      "version": 1,
      "schemas": [<Schema>, ...],
      "records": [<Record>, ...]
    }
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from schemastats.domain.errors import StorageError
from schemastats.domain.models import Record, Schema
from schemastats.storage.memory import InMemoryStore
from schemastats.utils.logging import get_logger

log = get_logger(__name__)

_FORMAT_VERSION = 1


class JsonFileStore(InMemoryStore):
    """Single-document JSON persistence; suited to one process at a time."""

    name: str = "file"

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            log.debug("Store file not found, starting empty", extra={"path": str(self.path)})
            return
        try:
            with self.path.open("r", encoding="utf-8") as f:
                document = json.load(f)
            schemas = [Schema.model_validate(item) for item in document.get("schemas", [])]
            records = [Record.model_validate(item) for item in document.get("records", [])]
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StorageError(f"Cannot read store file {self.path}: {exc}") from exc

        for schema in schemas:
            self._schemas[schema.id] = schema
        for record in records:
            self._records[record.id] = record
        log.debug(
            "Store file loaded",
            extra={"path": str(self.path), "schemas": len(schemas), "records": len(records)},
        )

    def _document(self) -> Dict[str, Any]:
        return {
            "version": _FORMAT_VERSION,
            "schemas": [s.model_dump(mode="json") for s in self._schemas.values()],
            "records": [r.model_dump(mode="json") for r in self._records.values()],
        }

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".store-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._document(), f, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Cannot write store file {self.path}: {exc}") from exc

    def save_schema(self, schema: Schema) -> Schema:
        with self._lock:
            super().save_schema(schema)
            self._flush()
        return schema

    def delete_schema(self, schema_id: str) -> int:
        with self._lock:
            removed = super().delete_schema(schema_id)
            self._flush()
        return removed

    def add_record(self, record: Record) -> Record:
        with self._lock:
            super().add_record(record)
            self._flush()
        return record

    def delete_record(self, record_id: str) -> Record:
        with self._lock:
            record = super().delete_record(record_id)
            self._flush()
        return record


__all__ = ["JsonFileStore"]
