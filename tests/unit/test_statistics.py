from __future__ import annotations

import math
import random

import pytest

from schemastats.domain.fields import FieldDescriptor, FieldType
from schemastats.domain.models import NumberValue, Record, Schema, SchemaBuilder, TextValue
from schemastats.statistics import FieldSummary, compute_statistics, summarize


def _records(schema: Schema, field: str, values) -> list[Record]:
    return [Record(schema_id=schema.id, data={field: NumberValue(value=v)}) for v in values]


def test_basic_summary(age_schema: Schema):
    stats = compute_statistics(age_schema, _records(age_schema, "age", [10, 20, 30]))

    summary = stats["age"]
    assert summary.count == 3
    assert summary.mean == 20
    assert summary.median == 20
    assert summary.min == 10
    assert summary.max == 30
    assert summary.variance == pytest.approx(66.6667, abs=1e-4)
    assert summary.standard_deviation == pytest.approx(8.165, abs=1e-3)


def test_unparseable_values_are_excluded(age_schema: Schema):
    rows = [{"age": 5}, {"age": "oops"}, {"age": 15}]

    summary = compute_statistics(age_schema, rows)["age"]

    assert summary.count == 2
    assert summary.mean == 10
    assert summary.median == 10
    assert summary.variance == 25
    assert summary.standard_deviation == 5


def test_even_count_median_averages_middle_pair(age_schema: Schema):
    summary = compute_statistics(age_schema, _records(age_schema, "age", [4, 1, 3, 2]))["age"]
    assert summary.median == 2.5


def test_no_records_yields_empty_result(age_schema: Schema):
    assert compute_statistics(age_schema, []) == {}


def test_field_without_usable_values_is_omitted(survey_schema: Schema):
    rows = [{"age": 30, "score": None}, {"age": 40, "score": "n/a"}, {"age": 50}]

    stats = compute_statistics(survey_schema, rows)

    assert list(stats) == ["age"]


def test_non_numeric_fields_are_never_summarized(survey_schema: Schema):
    rows = [{"age": 1, "rank": "3", "notes": "7", "visited": "2024-01-01"}]
    assert list(compute_statistics(survey_schema, rows)) == ["age"]


@pytest.mark.parametrize("junk", [None, "", True, False, float("nan"), float("inf"), "-inf", [1]])
def test_junk_values_are_skipped(age_schema: Schema, junk):
    summary = compute_statistics(age_schema, [{"age": 2}, {"age": junk}, {"age": 4}])["age"]
    assert summary.count == 2
    assert summary.mean == 3


def test_numeric_strings_are_used(age_schema: Schema):
    summary = compute_statistics(age_schema, [{"age": " 1.5 "}, {"age": "2.5"}])["age"]
    assert summary.count == 2
    assert summary.mean == 2


def test_results_follow_schema_order():
    schema = (
        SchemaBuilder("Order")
        .add_field("zeta", FieldType.NUMBER)
        .add_field("alpha", FieldType.NUMBER)
        .build()
    )
    stats = compute_statistics(schema, [{"alpha": 1, "zeta": 2}])
    assert list(stats) == ["zeta", "alpha"]


def test_accepts_plain_field_descriptors():
    fields = [FieldDescriptor(name="x", type="number"), FieldDescriptor(name="y", type="text")]
    stats = compute_statistics(fields, [{"x": 1}, {"x": 3, "y": "ignored"}])
    assert set(stats) == {"x"}
    assert stats["x"].mean == 2


def test_records_of_other_schemas_are_skipped(age_schema: Schema):
    stray = Record(schema_id="someone-else", data={"age": NumberValue(value=1000.0)})
    records = _records(age_schema, "age", [1, 2, 3]) + [stray]

    summary = compute_statistics(age_schema, records)["age"]

    assert summary.count == 3
    assert summary.max == 3


def test_digit_grouped_strings_are_skipped(age_schema: Schema):
    summary = compute_statistics(age_schema, [{"age": "1_000"}, {"age": "2"}])["age"]
    assert summary.count == 1
    assert summary.mean == 2


def test_extreme_magnitudes_do_not_raise(age_schema: Schema):
    summary = compute_statistics(age_schema, [{"age": 1e308}, {"age": -1e308}])["age"]

    assert summary.count == 2
    assert summary.mean == 0
    assert summary.median == 0
    assert summary.min == -1e308
    assert summary.max == 1e308
    assert summary.variance == math.inf
    assert summary.standard_deviation == math.inf


def test_large_same_sign_values_stay_finite():
    summary = summarize([1e308, 1.5e308])

    assert summary.mean == pytest.approx(1.25e308)
    assert summary.median == pytest.approx(1.25e308)
    assert summary.min <= summary.mean <= summary.max


def test_typed_text_value_in_numeric_column_is_parsed(age_schema: Schema):
    record = Record(schema_id=age_schema.id, data={"age": TextValue(value="12")})
    assert compute_statistics(age_schema, [record])["age"].mean == 12


def test_single_value_has_zero_spread():
    summary = summarize([7.0])
    assert summary.count == 1
    assert summary.mean == summary.median == summary.min == summary.max == 7
    assert summary.variance == 0
    assert summary.standard_deviation == 0


def test_summarize_rejects_empty_input():
    with pytest.raises(ValueError):
        summarize([])


class TestSummaryProperties:
    SAMPLES = [
        [0.1, 0.2, 0.3],
        [1e15, 1.0, -1e15, 3.5],
        [-5.0, -5.0, -5.0],
        [2.0, 1e-9, 1e9, 42.0, 0.0, -17.25],
        [random.Random(seed).uniform(-1000, 1000) for seed in range(25)],
    ]

    @pytest.mark.parametrize("values", SAMPLES)
    def test_ordering_and_spread_invariants(self, values):
        summary = summarize(values)

        assert summary.min <= summary.median <= summary.max
        assert summary.min <= summary.mean <= summary.max
        assert summary.variance >= 0
        assert summary.standard_deviation == pytest.approx(math.sqrt(summary.variance))
        assert summary.count == len(values)

    @pytest.mark.parametrize("values", SAMPLES)
    def test_result_does_not_depend_on_input_order(self, values):
        shuffled = list(values)
        random.Random(99).shuffle(shuffled)
        assert summarize(shuffled) == summarize(values)
        assert summarize(list(reversed(values))) == summarize(values)

    def test_repeated_computation_is_identical(self, age_schema: Schema):
        records = _records(age_schema, "age", [3.0, 1.0, 2.0])
        assert compute_statistics(age_schema, records) == compute_statistics(age_schema, records)


def test_to_dict_uses_camel_case_keys():
    payload = summarize([1.0, 3.0]).to_dict()

    assert payload == {
        "count": 2,
        "mean": 2.0,
        "median": 2.0,
        "min": 1.0,
        "max": 3.0,
        "variance": 1.0,
        "standardDeviation": 1.0,
    }


def test_summary_accepts_alias_on_input():
    summary = FieldSummary.model_validate(
        {
            "count": 1,
            "mean": 1,
            "median": 1,
            "min": 1,
            "max": 1,
            "variance": 0,
            "standardDeviation": 0,
        }
    )
    assert summary.standard_deviation == 0
