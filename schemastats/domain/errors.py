"""
Error taxonomy for schema-stats.

Validation problems are data (`FieldFailure`) and travel back to the caller in
a `ValidationResult`; only lookup, definition and storage problems are raised.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class FailureReason(str, Enum):
    """Why a single field of a submission was rejected."""

    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_NUMBER = "InvalidNumber"
    INVALID_OPTION = "InvalidOption"


class FieldFailure(BaseModel):
    """
    One per-field validation failure.

    `raw_value` carries the rejected input for `InvalidNumber` and
    `InvalidOption`; it is None for `MissingRequiredField`.
    """

    field_name: str = Field(..., description="Name of the offending field.")
    reason: FailureReason = Field(..., description="Failure category.")
    raw_value: Optional[Any] = Field(None, description="Input that failed coercion.")

    model_config = {"frozen": True}

    @classmethod
    def missing(cls, field_name: str) -> "FieldFailure":
        return cls(field_name=field_name, reason=FailureReason.MISSING_REQUIRED_FIELD)

    @classmethod
    def invalid_number(cls, field_name: str, raw_value: Any) -> "FieldFailure":
        return cls(field_name=field_name, reason=FailureReason.INVALID_NUMBER, raw_value=raw_value)

    @classmethod
    def invalid_option(cls, field_name: str, raw_value: Any) -> "FieldFailure":
        return cls(field_name=field_name, reason=FailureReason.INVALID_OPTION, raw_value=raw_value)

    @property
    def message(self) -> str:
        if self.reason is FailureReason.MISSING_REQUIRED_FIELD:
            return f"{self.field_name} is required"
        if self.reason is FailureReason.INVALID_NUMBER:
            return f"{self.field_name}: {self.raw_value!r} is not a number"
        return f"{self.field_name}: {self.raw_value!r} is not an allowed option"


class SchemaStatsError(Exception):
    """Base class for errors raised by schema-stats."""


class UnknownSchemaError(SchemaStatsError, LookupError):
    """A schema identifier did not resolve in the record store."""

    def __init__(self, schema_id: str) -> None:
        self.schema_id = schema_id
        super().__init__(f"Schema '{schema_id}' not found")


class UnknownRecordError(SchemaStatsError, LookupError):
    """A record identifier did not resolve in the record store."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Record '{record_id}' not found")


class SchemaDefinitionError(SchemaStatsError, ValueError):
    """A schema definition violates the field-list contract."""

    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid schema definition: " + "; ".join(self.problems))


class StorageError(SchemaStatsError):
    """The storage backend failed to complete an operation."""


__all__ = [
    "FailureReason",
    "FieldFailure",
    "SchemaStatsError",
    "UnknownSchemaError",
    "UnknownRecordError",
    "SchemaDefinitionError",
    "StorageError",
]
