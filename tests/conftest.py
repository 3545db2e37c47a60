"""
Pytest configuration for schema-stats.

Provides fixtures for:
- Sample schemas and catalogs over the in-memory store
- Settings isolation for CLI tests (file store in a temp dir)
- Database connection management for PostgreSQL integration tests
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import psycopg
import pytest

from schemastats.catalog import Catalog
from schemastats.config import Settings, get_settings
from schemastats.domain.fields import FieldType
from schemastats.domain.models import Schema, SchemaBuilder
from schemastats.storage.db_factory import build_dsn
from schemastats.storage.memory import InMemoryStore


@pytest.fixture()
def age_schema() -> Schema:
    return SchemaBuilder("Ages").add_field("age", FieldType.NUMBER, required=True).build()


@pytest.fixture()
def survey_schema() -> Schema:
    """Mixed schema: two numeric columns, a select, a date and free text."""
    return (
        SchemaBuilder("Survey")
        .add_field("age", FieldType.NUMBER, required=True)
        .add_field("score", FieldType.NUMBER)
        .add_field("rank", FieldType.SELECT, required=True, options=["low", "high"])
        .add_field("visited", FieldType.DATE)
        .add_field("notes", FieldType.TEXT)
        .build()
    )


@pytest.fixture()
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def catalog(memory_store: InMemoryStore) -> Catalog:
    return Catalog(memory_store, cache_statistics=True)


@pytest.fixture()
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """
    Point the file store at a temp dir and quiet logging for CLI runs.

    Yields the store file path.
    """
    data_file = tmp_path / "store.json"
    monkeypatch.setenv("STORAGE_BACKEND", "file")
    monkeypatch.setenv("DATA_FILE", str(data_file))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    get_settings.cache_clear()
    yield data_file
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_dsn() -> str:
    """
    DSN of the integration database, built from the DB_* environment variables.
    """
    return build_dsn(Settings())


@pytest.fixture(scope="session")
def postgres_available(test_dsn: str) -> bool:
    try:
        psycopg.connect(test_dsn, connect_timeout=3).close()
    except psycopg.OperationalError:
        return False
    return True


@pytest.fixture()
def clean_tables(test_dsn: str, postgres_available: bool) -> Generator[None, None, None]:
    """
    Drop the store tables around each test; skip when PostgreSQL is unreachable.
    """
    if not postgres_available:
        pytest.skip("PostgreSQL not reachable at DB_HOST/DB_PORT")

    def _drop() -> None:
        with psycopg.connect(test_dsn) as conn:
            conn.execute("DROP TABLE IF EXISTS schemastats_records, schemastats_schemas")

    _drop()
    yield
    _drop()
