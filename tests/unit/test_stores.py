from __future__ import annotations

import json
from pathlib import Path

import pytest

from schemastats.domain.errors import StorageError, UnknownRecordError, UnknownSchemaError
from schemastats.domain.models import NumberValue, Record, Schema, SelectValue
from schemastats.storage import AbstractRecordStore, RecordStore
from schemastats.storage.file_store import JsonFileStore
from schemastats.storage.memory import InMemoryStore


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path: Path) -> RecordStore:
    if request.param == "memory":
        return InMemoryStore()
    return JsonFileStore(tmp_path / "nested" / "store.json")


def test_stores_satisfy_protocol(store: RecordStore):
    assert isinstance(store, RecordStore)
    assert isinstance(store, AbstractRecordStore)
    assert store.name in ("memory", "file")


def test_schema_lifecycle(store: RecordStore, survey_schema: Schema, age_schema: Schema):
    store.save_schema(survey_schema)
    store.save_schema(age_schema)

    assert store.get_schema(survey_schema.id) == survey_schema
    assert store.list_schemas() == [survey_schema, age_schema]
    assert store.delete_schema(age_schema.id) == 0
    assert store.list_schemas() == [survey_schema]


def test_unknown_ids_raise(store: RecordStore, age_schema: Schema):
    with pytest.raises(UnknownSchemaError):
        store.get_schema("missing")
    with pytest.raises(UnknownSchemaError):
        store.list_records("missing")
    with pytest.raises(UnknownSchemaError):
        store.delete_schema("missing")
    with pytest.raises(UnknownSchemaError):
        store.add_record(Record(schema_id=age_schema.id, data={}))
    with pytest.raises(UnknownRecordError):
        store.get_record("missing")
    with pytest.raises(UnknownRecordError):
        store.delete_record("missing")


def test_records_are_scoped_to_their_schema(
    store: RecordStore, survey_schema: Schema, age_schema: Schema
):
    store.save_schema(survey_schema)
    store.save_schema(age_schema)
    first = store.add_record(Record(schema_id=age_schema.id, data={"age": NumberValue(value=1)}))
    second = store.add_record(Record(schema_id=age_schema.id, data={"age": NumberValue(value=2)}))
    other = store.add_record(
        Record(
            schema_id=survey_schema.id,
            data={"age": NumberValue(value=9), "rank": SelectValue(value="low")},
        )
    )

    assert store.list_records(age_schema.id) == [first, second]
    assert store.list_records(survey_schema.id) == [other]
    assert store.get_record(second.id) == second


def test_delete_schema_cascades(store: RecordStore, age_schema: Schema):
    store.save_schema(age_schema)
    record = store.add_record(Record(schema_id=age_schema.id, data={"age": NumberValue(value=1)}))

    assert store.delete_schema(age_schema.id) == 1
    with pytest.raises(UnknownRecordError):
        store.get_record(record.id)


def test_delete_record_returns_it(store: RecordStore, age_schema: Schema):
    store.save_schema(age_schema)
    record = store.add_record(Record(schema_id=age_schema.id, data={"age": NumberValue(value=1)}))

    assert store.delete_record(record.id) == record
    assert store.list_records(age_schema.id) == []


class TestJsonFileStore:
    def test_missing_file_starts_empty(self, tmp_path: Path):
        store = JsonFileStore(tmp_path / "absent.json")
        assert store.list_schemas() == []
        assert not (tmp_path / "absent.json").exists()

    def test_contents_survive_reopening(self, tmp_path: Path, survey_schema: Schema):
        path = tmp_path / "store.json"
        store = JsonFileStore(path)
        store.save_schema(survey_schema)
        record = store.add_record(
            Record(
                schema_id=survey_schema.id,
                data={"age": NumberValue(value=33), "rank": SelectValue(value="high")},
            )
        )

        reopened = JsonFileStore(path)

        assert reopened.get_schema(survey_schema.id) == survey_schema
        assert reopened.list_records(survey_schema.id) == [record]

    def test_document_layout(self, tmp_path: Path, age_schema: Schema):
        path = tmp_path / "store.json"
        store = JsonFileStore(path)
        store.save_schema(age_schema)
        store.add_record(Record(schema_id=age_schema.id, data={"age": NumberValue(value=4)}))

        document = json.loads(path.read_text(encoding="utf-8"))

        assert document["version"] == 1
        assert [s["id"] for s in document["schemas"]] == [age_schema.id]
        assert document["records"][0]["data"] == {"age": {"kind": "number", "value": 4.0}}

    def test_deletions_are_persisted(self, tmp_path: Path, age_schema: Schema):
        path = tmp_path / "store.json"
        store = JsonFileStore(path)
        store.save_schema(age_schema)
        store.add_record(Record(schema_id=age_schema.id, data={"age": NumberValue(value=4)}))
        store.delete_schema(age_schema.id)

        reopened = JsonFileStore(path)

        assert reopened.list_schemas() == []

    def test_corrupt_file_raises_storage_error(self, tmp_path: Path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError, match="Cannot read store file"):
            JsonFileStore(path)

    def test_invalid_document_raises_storage_error(self, tmp_path: Path):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"schemas": [{"name": "no fields"}]}), encoding="utf-8")

        with pytest.raises(StorageError):
            JsonFileStore(path)

    def test_no_temp_files_are_left_behind(self, tmp_path: Path, age_schema: Schema):
        store = JsonFileStore(tmp_path / "store.json")
        store.save_schema(age_schema)

        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]
