"""
Field descriptors: the column definitions a schema is made of.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class FieldType(str, Enum):
    """
    Closed set of field types.

    New types are added here and given a coercer with
    `schemastats.validation.register_coercer`.
    """

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


class FieldDescriptor(BaseModel):
    """
    One column of a schema.

    `options` is present exactly when `type` is `select`.
    """

    name: str = Field(..., min_length=1, description="Column name, unique within its schema.")
    type: FieldType = Field(FieldType.TEXT, description="Value type of the column.")
    required: bool = Field(False, description="Whether a value must be supplied.")
    options: Optional[Tuple[str, ...]] = Field(
        None, description="Allowed values for select fields, in display order."
    )

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "str_strip_whitespace": True,
    }

    @field_validator("options", mode="before")
    @classmethod
    def _normalize_options(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, str):
            value = value.split(",")
        cleaned: list[str] = []
        for option in value:
            text = str(option).strip()
            if text and text not in cleaned:
                cleaned.append(text)
        return tuple(cleaned) or None

    @model_validator(mode="after")
    def _check_options(self) -> "FieldDescriptor":
        if self.type is FieldType.SELECT and not self.options:
            raise ValueError(f"select field '{self.name}' needs at least one option")
        if self.type is not FieldType.SELECT and self.options:
            raise ValueError(f"field '{self.name}' of type {self.type.value} cannot declare options")
        return self

    @property
    def is_numeric(self) -> bool:
        return self.type is FieldType.NUMBER


__all__ = ["FieldType", "FieldDescriptor"]
