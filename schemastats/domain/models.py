"""
Domain models for schema-stats.

A `Schema` is an immutable, ordered list of `FieldDescriptor`s. A `Record` is
one row entered against a schema; its payload maps field names to typed values
produced by `schemastats.validation`, never to raw user input.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Iterable, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator

from schemastats.domain.fields import FieldDescriptor, FieldType


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TextValue(BaseModel):
    kind: Literal["text"] = "text"
    value: str

    model_config = {"frozen": True}


class NumberValue(BaseModel):
    kind: Literal["number"] = "number"
    value: float

    model_config = {"frozen": True}


class DateValue(BaseModel):
    """ISO-8601 calendar date, kept as text."""

    kind: Literal["date"] = "date"
    value: str

    model_config = {"frozen": True}


class SelectValue(BaseModel):
    kind: Literal["select"] = "select"
    value: str

    model_config = {"frozen": True}


FieldValue = Annotated[
    Union[TextValue, NumberValue, DateValue, SelectValue],
    Field(discriminator="kind"),
]


class Schema(BaseModel):
    """
    A named, ordered set of field descriptors.

    Frozen after construction: the field list cannot be extended, shrunk or
    reordered. Use `SchemaBuilder` to assemble one incrementally.
    """

    id: str = Field(default_factory=_new_id, description="Opaque unique identifier.")
    name: str = Field(..., min_length=1, description="Human-readable label.")
    fields: Tuple[FieldDescriptor, ...] = Field(..., min_length=1, description="Ordered columns.")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation timestamp.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "str_strip_whitespace": True,
    }

    @field_validator("fields")
    @classmethod
    def _unique_names(cls, fields: Tuple[FieldDescriptor, ...]) -> Tuple[FieldDescriptor, ...]:
        seen = set()
        duplicates = []
        for descriptor in fields:
            if descriptor.name in seen:
                duplicates.append(descriptor.name)
            seen.add(descriptor.name)
        if duplicates:
            raise ValueError(f"duplicate field names: {sorted(set(duplicates))}")
        return fields

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def numeric_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.is_numeric]

    def field(self, name: str) -> Optional[FieldDescriptor]:
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None


class SchemaBuilder:
    """
    Collects field descriptors and produces a frozen `Schema`.

    Example
    -------
        schema = (
            SchemaBuilder("Survey")
            .add_field("age", FieldType.NUMBER, required=True)
            .add_field("rank", "select", options=["low", "high"])
            .build()
        )
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._fields: List[FieldDescriptor] = []

    def add_field(
        self,
        name: str,
        type: Union[FieldType, str] = FieldType.TEXT,
        required: bool = False,
        options: Optional[Iterable[str]] = None,
    ) -> "SchemaBuilder":
        self._fields.append(
            FieldDescriptor(
                name=name,
                type=FieldType(type),
                required=required,
                options=tuple(options) if options is not None else None,
            )
        )
        return self

    def extend(self, fields: Iterable[Union[FieldDescriptor, Mapping[str, Any]]]) -> "SchemaBuilder":
        for descriptor in fields:
            if not isinstance(descriptor, FieldDescriptor):
                descriptor = FieldDescriptor.model_validate(descriptor)
            self._fields.append(descriptor)
        return self

    def build(self) -> Schema:
        return Schema(name=self._name, fields=tuple(self._fields))


class Record(BaseModel):
    """
    One data row, tagged with the schema it was validated against.
    """

    id: str = Field(default_factory=_new_id, description="Opaque unique identifier.")
    schema_id: str = Field(..., description="Identifier of the owning schema.")
    data: Dict[str, FieldValue] = Field(default_factory=dict, description="Typed field values.")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation timestamp.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    def plain_data(self) -> Dict[str, Any]:
        """Field name to plain Python value (str or float)."""
        return {name: typed.value for name, typed in self.data.items()}


__all__ = [
    "TextValue",
    "NumberValue",
    "DateValue",
    "SelectValue",
    "FieldValue",
    "Schema",
    "SchemaBuilder",
    "Record",
]
