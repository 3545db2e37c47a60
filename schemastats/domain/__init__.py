"""
Domain package for schema-stats.

Exports the schema/record models and the error taxonomy shared by validation,
statistics, storage and the CLI. Keep this package focused on data
definitions.
"""

from schemastats.domain.errors import (
    FailureReason,
    FieldFailure,
    SchemaDefinitionError,
    SchemaStatsError,
    StorageError,
    UnknownRecordError,
    UnknownSchemaError,
)
from schemastats.domain.fields import FieldDescriptor, FieldType
from schemastats.domain.models import (
    DateValue,
    FieldValue,
    NumberValue,
    Record,
    Schema,
    SchemaBuilder,
    SelectValue,
    TextValue,
)

__all__ = [
    "FailureReason",
    "FieldFailure",
    "SchemaDefinitionError",
    "SchemaStatsError",
    "StorageError",
    "UnknownRecordError",
    "UnknownSchemaError",
    "FieldDescriptor",
    "FieldType",
    "DateValue",
    "FieldValue",
    "NumberValue",
    "Record",
    "Schema",
    "SchemaBuilder",
    "SelectValue",
    "TextValue",
]
