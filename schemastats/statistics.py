"""
Descriptive statistics over the numeric fields of a record set.

For every `number` field the engine reports count, mean, median, min, max,
population variance (divide by n) and standard deviation. Values that are
missing, non-numeric or not finite are skipped silently, so partially dirty
data still produces a summary. A field with no usable value is left out of the
result entirely rather than reported as zeros.

The computation only depends on the multiset of values: results are
identical for any ordering of the input records.
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from schemastats.domain.fields import FieldDescriptor, FieldType
from schemastats.domain.models import (
    DateValue,
    NumberValue,
    Record,
    Schema,
    SelectValue,
    TextValue,
)
from schemastats.utils.logging import get_logger

log = get_logger(__name__)

SUMMARIZED_TYPES = frozenset({FieldType.NUMBER})

_TYPED_VALUES = (TextValue, NumberValue, DateValue, SelectValue)


class FieldSummary(BaseModel):
    """
    Summary statistics of one numeric field.

    Serializes with camelCase keys (`standardDeviation`) via `to_dict()`.
    """

    count: int = Field(..., ge=1)
    mean: float
    median: float
    min: float
    max: float
    variance: float
    standard_deviation: float = Field(..., alias="standardDeviation")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def _as_float(value: Any) -> Optional[float]:
    """Best-effort numeric view of a stored value; None when unusable."""
    if isinstance(value, _TYPED_VALUES):
        value = value.value
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, numbers.Real):
            number = float(value)
        elif isinstance(value, str) and "_" not in value:
            number = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _midpoint(low: float, high: float) -> float:
    # Adding two values of the same sign can overflow; opposite signs cannot.
    if (low < 0) == (high < 0):
        return low + (high - low) / 2
    return (low + high) / 2


def summarize(values: Sequence[float]) -> FieldSummary:
    """
    Summarize a non-empty sequence of finite floats.

    Works in double precision on the sorted values with `math.fsum`, so the
    result does not depend on input order. Each term is divided by the count
    before summing, which keeps the sums finite; a variance too large for a
    double comes out as ``inf`` instead of raising.
    """
    if not values:
        raise ValueError("summarize() requires at least one value")
    ordered = sorted(float(v) for v in values)
    n = len(ordered)
    low, high = ordered[0], ordered[-1]

    mean = min(max(math.fsum(v / n for v in ordered), low), high)
    deviations = [v - mean for v in ordered]
    variance = math.fsum(d * d / n for d in deviations)

    middle = n // 2
    median = ordered[middle] if n % 2 else _midpoint(ordered[middle - 1], ordered[middle])

    return FieldSummary(
        count=n,
        mean=mean,
        median=median,
        min=low,
        max=high,
        variance=variance,
        standard_deviation=math.sqrt(variance),
    )


def _payloads(
    records: Iterable[Union[Record, Mapping[str, Any]]], schema_id: Optional[str]
) -> List[Mapping[str, Any]]:
    payloads: List[Mapping[str, Any]] = []
    for record in records:
        if isinstance(record, Record):
            if schema_id is not None and record.schema_id != schema_id:
                log.warning(
                    "Skipping record tagged with another schema",
                    extra={"record_id": record.id, "schema_id": schema_id},
                )
                continue
            payloads.append(record.data)
        elif isinstance(record, Mapping):
            payloads.append(record)
    return payloads


def compute_statistics(
    schema_or_fields: Union[Schema, Iterable[FieldDescriptor]],
    records: Iterable[Union[Record, Mapping[str, Any]]],
) -> Dict[str, FieldSummary]:
    """
    Compute per-field summaries for every numeric field.

    Parameters
    ----------
    schema_or_fields : Schema | Iterable[FieldDescriptor]
        The field list that interprets the record payloads.
    records : Iterable[Record | Mapping[str, Any]]
        Record objects or plain field-name mappings. Typed values and raw
        values are both accepted.

    Returns
    -------
    Dict[str, FieldSummary]
        Field name to summary, in schema order. Fields without usable values
        are absent; an empty dict means no numeric data at all.
    """
    if isinstance(schema_or_fields, Schema):
        fields = schema_or_fields.fields
        schema_id: Optional[str] = schema_or_fields.id
    else:
        fields = tuple(schema_or_fields)
        schema_id = None

    payloads = _payloads(records, schema_id)
    summaries: Dict[str, FieldSummary] = {}

    for descriptor in fields:
        if descriptor.type not in SUMMARIZED_TYPES:
            continue
        values = [
            number
            for number in (_as_float(payload.get(descriptor.name)) for payload in payloads)
            if number is not None
        ]
        if values:
            summaries[descriptor.name] = summarize(values)

    return summaries


__all__ = [
    "SUMMARIZED_TYPES",
    "FieldSummary",
    "compute_statistics",
    "summarize",
]
