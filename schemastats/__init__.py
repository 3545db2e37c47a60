"""
schema-stats - user-defined tabular schemas with descriptive statistics.

Users declare a schema (an ordered list of named, typed fields), enter records
against it, and compute summaries of its numeric fields:

- Field/schema/record models with typed values
- Coercion and validation of raw input, collecting every failure
- Statistics engine: count, mean, median, min, max, population variance,
  standard deviation
- Record stores (memory, JSON file, PostgreSQL) behind a catalog service with
  cached statistics
- CSV/JSON export and import, rich reports, and a typer CLI
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from schemastats.catalog import Catalog, ImportReport, Submission, available_backends, open_store
from schemastats.config import Settings, get_settings
from schemastats.domain import (
    FailureReason,
    FieldDescriptor,
    FieldFailure,
    FieldType,
    Record,
    Schema,
    SchemaBuilder,
    SchemaDefinitionError,
    SchemaStatsError,
    StorageError,
    UnknownRecordError,
    UnknownSchemaError,
)
from schemastats.statistics import FieldSummary, compute_statistics
from schemastats.utils.logging import configure_logging, get_logger
from schemastats.validation import ValidationResult, coerce_value, register_coercer, validate

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "FieldDescriptor",
    "FieldType",
    "Record",
    "Schema",
    "SchemaBuilder",
    # Errors
    "FailureReason",
    "FieldFailure",
    "SchemaDefinitionError",
    "SchemaStatsError",
    "StorageError",
    "UnknownRecordError",
    "UnknownSchemaError",
    # Core
    "ValidationResult",
    "coerce_value",
    "register_coercer",
    "validate",
    "FieldSummary",
    "compute_statistics",
    # Catalog
    "Catalog",
    "ImportReport",
    "Submission",
    "available_backends",
    "open_store",
    # Logging
    "configure_logging",
    "get_logger",
]
