"""
Coercion and validation of raw record input against a schema.

`coerce_value` turns one raw value (as typed into an entry form or read from
an import file) into a typed value, "absent" (None), or a `FieldFailure`.
`validate` applies it to a whole submission and collects every failure, so a
caller can correct a rejected record in a single round trip.

Both functions are pure: they never raise for bad input and never touch a
store.

Usage:
    from schemastats.validation import validate

    result = validate(schema, {"age": "42", "rank": "high"})
    if result.ok:
        store.add_record(Record(schema_id=schema.id, data=result.data))
    else:
        for failure in result.failures:
            print(failure.message)
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from schemastats.domain.errors import FieldFailure
from schemastats.domain.fields import FieldDescriptor, FieldType
from schemastats.domain.models import (
    DateValue,
    FieldValue,
    NumberValue,
    Schema,
    SelectValue,
    TextValue,
)
from schemastats.utils.logging import get_logger

log = get_logger(__name__)

# A coercer returns the typed value, None for "absent", or a failure.
Coerced = Union[TextValue, NumberValue, DateValue, SelectValue, FieldFailure, None]
Coercer = Callable[[FieldDescriptor, Any], Coerced]


@dataclass(frozen=True)
class ValidationResult:
    """
    Outcome of validating one submission.

    `data` is only populated when `failures` is empty.
    """

    data: Dict[str, FieldValue] = field(default_factory=dict)
    failures: Tuple[FieldFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures

    def failures_by_field(self) -> Dict[str, FieldFailure]:
        return {f.field_name: f for f in self.failures}


def _coerce_text(descriptor: FieldDescriptor, raw: Any) -> Coerced:
    return TextValue(value=raw if isinstance(raw, str) else str(raw))


def _coerce_number(descriptor: FieldDescriptor, raw: Any) -> Coerced:
    if isinstance(raw, bool):
        return FieldFailure.invalid_number(descriptor.name, raw)

    if isinstance(raw, numbers.Real):
        candidate: Any = raw
    elif isinstance(raw, str):
        candidate = raw.strip()
        if not candidate:
            return None
        # float() accepts digit grouping ("1_000"); form input does not.
        if "_" in candidate:
            return FieldFailure.invalid_number(descriptor.name, raw)
    else:
        return FieldFailure.invalid_number(descriptor.name, raw)

    try:
        number = float(candidate)
    except ValueError:
        return FieldFailure.invalid_number(descriptor.name, raw)
    except OverflowError:
        return None

    # NaN and infinities count as "no value", never as zero.
    if not math.isfinite(number):
        return None
    return NumberValue(value=number)


def _coerce_date(descriptor: FieldDescriptor, raw: Any) -> Coerced:
    if isinstance(raw, datetime):
        return DateValue(value=raw.date().isoformat())
    if isinstance(raw, date):
        return DateValue(value=raw.isoformat())
    return DateValue(value=raw if isinstance(raw, str) else str(raw))


def _coerce_select(descriptor: FieldDescriptor, raw: Any) -> Coerced:
    value = raw if isinstance(raw, str) else str(raw)
    if value not in (descriptor.options or ()):
        return FieldFailure.invalid_option(descriptor.name, raw)
    return SelectValue(value=value)


_COERCERS: Dict[FieldType, Coercer] = {
    FieldType.TEXT: _coerce_text,
    FieldType.NUMBER: _coerce_number,
    FieldType.DATE: _coerce_date,
    FieldType.SELECT: _coerce_select,
}


def register_coercer(field_type: Union[FieldType, str], coercer: Coercer) -> None:
    """Install (or replace) the coercer used for a field type."""
    _COERCERS[FieldType(field_type)] = coercer


def coerce_value(descriptor: FieldDescriptor, raw: Any) -> Coerced:
    """
    Coerce one raw value according to its field descriptor.

    Returns a typed value, None when the input counts as absent, or a
    `FieldFailure` (`InvalidNumber` / `InvalidOption`). The `required` flag is
    not checked here.
    """
    if raw is None or (isinstance(raw, str) and raw == ""):
        return None
    return _COERCERS[descriptor.type](descriptor, raw)


def validate(schema: Schema, raw_data: Optional[Mapping[str, Any]]) -> ValidationResult:
    """
    Validate a candidate payload against every field of `schema`.

    Parameters
    ----------
    schema : Schema
        The schema the payload is entered against.
    raw_data : Mapping[str, Any] | None
        Field name to raw input. Keys the schema does not declare are ignored.

    Returns
    -------
    ValidationResult
        Typed data when every field passes, otherwise all per-field failures
        in schema order.
    """
    raw_data = raw_data or {}
    typed: Dict[str, FieldValue] = {}
    failures = []

    for descriptor in schema.fields:
        outcome = coerce_value(descriptor, raw_data.get(descriptor.name))
        if isinstance(outcome, FieldFailure):
            failures.append(outcome)
        elif outcome is None:
            if descriptor.required:
                failures.append(FieldFailure.missing(descriptor.name))
        else:
            typed[descriptor.name] = outcome

    unknown = sorted(set(raw_data) - set(schema.field_names))
    if unknown:
        log.debug(
            "Ignoring undeclared fields",
            extra={"schema_id": schema.id, "fields": unknown},
        )

    if failures:
        return ValidationResult(failures=tuple(failures))
    return ValidationResult(data=typed)


__all__ = [
    "Coerced",
    "Coercer",
    "ValidationResult",
    "coerce_value",
    "register_coercer",
    "validate",
]
