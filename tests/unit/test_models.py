from __future__ import annotations

import pydantic
import pytest

from schemastats.domain.fields import FieldDescriptor, FieldType
from schemastats.domain.models import NumberValue, Record, Schema, SchemaBuilder, TextValue


class TestFieldDescriptor:
    def test_select_requires_options(self):
        with pytest.raises(pydantic.ValidationError, match="needs at least one option"):
            FieldDescriptor(name="rank", type=FieldType.SELECT)

    def test_non_select_rejects_options(self):
        with pytest.raises(pydantic.ValidationError, match="cannot declare options"):
            FieldDescriptor(name="age", type=FieldType.NUMBER, options=("a",))

    def test_empty_options_on_non_select_are_dropped(self):
        descriptor = FieldDescriptor(name="age", type="number", options=[])
        assert descriptor.options is None

    def test_options_are_trimmed_deduplicated_and_ordered(self):
        descriptor = FieldDescriptor(
            name="rank", type="select", options=[" high", "low ", "", "high", "mid"]
        )
        assert descriptor.options == ("high", "low", "mid")

    def test_options_accept_comma_separated_text(self):
        descriptor = FieldDescriptor(name="rank", type="select", options="low, high,")
        assert descriptor.options == ("low", "high")

    def test_name_must_not_be_blank(self):
        with pytest.raises(pydantic.ValidationError):
            FieldDescriptor(name="   ", type="text")

    def test_unknown_type_is_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            FieldDescriptor(name="flag", type="boolean")

    def test_descriptor_is_frozen(self):
        descriptor = FieldDescriptor(name="age", type="number")
        with pytest.raises(pydantic.ValidationError):
            descriptor.required = True


class TestSchema:
    def test_builder_preserves_field_order(self, survey_schema: Schema):
        assert survey_schema.field_names == ["age", "score", "rank", "visited", "notes"]
        assert [f.name for f in survey_schema.numeric_fields] == ["age", "score"]

    def test_ids_and_timestamps_are_assigned(self):
        first = SchemaBuilder("A").add_field("x").build()
        second = SchemaBuilder("A").add_field("x").build()
        assert first.id != second.id
        assert first.created_at.tzinfo is not None

    def test_duplicate_field_names_are_rejected(self):
        with pytest.raises(pydantic.ValidationError, match="duplicate field names"):
            SchemaBuilder("Dup").add_field("x").add_field("x", "number").build()

    def test_empty_field_list_is_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            SchemaBuilder("Empty").build()

    def test_blank_name_is_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            SchemaBuilder("  ").add_field("x").build()

    def test_schema_is_immutable(self, age_schema: Schema):
        with pytest.raises(pydantic.ValidationError):
            age_schema.fields = ()
        assert isinstance(age_schema.fields, tuple)

    def test_field_lookup(self, survey_schema: Schema):
        assert survey_schema.field("rank").options == ("low", "high")
        assert survey_schema.field("missing") is None

    def test_json_round_trip_keeps_identity(self, survey_schema: Schema):
        restored = Schema.model_validate(survey_schema.model_dump(mode="json"))
        assert restored == survey_schema


class TestRecord:
    def test_plain_data_unwraps_typed_values(self):
        record = Record(
            schema_id="s1",
            data={"age": NumberValue(value=10.0), "notes": TextValue(value="ok")},
        )
        assert record.plain_data() == {"age": 10.0, "notes": "ok"}

    def test_tagged_values_are_parsed_from_json(self):
        record = Record.model_validate(
            {"schema_id": "s1", "data": {"age": {"kind": "number", "value": 3}}}
        )
        assert isinstance(record.data["age"], NumberValue)
        assert record.data["age"].value == 3.0
