"""
Field descriptors: the normalized form of a row type's field declarations.

A row type lists its fields once; every entry is normalized here and the
result is shared by hydration and the save path. Accepted shapes:

    "name"                                   attribute and column both "name"
    ("name", "full_name")                    attribute "name", column "full_name"
    {"name": "full_name"}                    same, as a single-key mapping
    ("id", {"primary": True, "auto": True})  options: column/primary/auto/required
    FieldDescriptor(...)                     returned unchanged
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Tuple, Union

from pydantic import BaseModel, Field

from minorm.errors import InvalidFieldSpec

OPTION_KEYS = frozenset({"column", "primary", "auto", "required"})

# Column names are written into SQL text verbatim.
IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def is_identifier(name: Any) -> bool:
    """True when `name` is a plain or table-qualified SQL identifier."""
    return isinstance(name, str) and IDENTIFIER.match(name) is not None


class FieldDescriptor(BaseModel):
    """
    One mapped field of a row type.
    """

    attr_name: str = Field(..., description="Attribute name on the row instance.")
    data_name: str = Field(..., description="Column name in the table.")
    is_primary: bool = Field(False, description="Column is the table's primary key.")
    is_auto: bool = Field(False, description="Value is generated by the database on insert.")
    is_required: bool = Field(False, description="Value must be set when saving.")

    model_config = {
        "frozen": True,
    }


FieldSpec = Union[str, Tuple[str, Any], Mapping, FieldDescriptor]


def _check_name(value: Any, field: Any) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidFieldSpec(f"Invalid field name {value!r} in {field!r}")
    return value


def _check_column(value: Any, field: Any) -> str:
    if not is_identifier(value):
        raise InvalidFieldSpec(f"Invalid column name {value!r} in {field!r}")
    return value


def _split_pair(field: Any) -> Tuple[str, Any]:
    if isinstance(field, tuple) and len(field) == 2:
        return _check_name(field[0], field), field[1]
    if isinstance(field, Mapping) and len(field) == 1:
        ((attr_name, options),) = field.items()
        return _check_name(attr_name, field), options
    raise InvalidFieldSpec(f"Unrecognized field declaration {field!r}")


def normalize(field: FieldSpec) -> FieldDescriptor:
    """
    Normalize one field declaration.

    Raises
    ------
    InvalidFieldSpec
        If the declaration is not a bare name, a recognized options pair or a
        FieldDescriptor, if it carries unknown option keys, or if its column
        name is not a SQL identifier.
    """
    if isinstance(field, FieldDescriptor):
        _check_column(field.data_name, field)
        return field
    if isinstance(field, str):
        name = _check_column(_check_name(field, field), field)
        return FieldDescriptor(attr_name=name, data_name=name)

    attr_name, options = _split_pair(field)
    if isinstance(options, str):
        return FieldDescriptor(attr_name=attr_name, data_name=_check_column(options, field))
    if not isinstance(options, Mapping):
        raise InvalidFieldSpec(f"Options for field '{attr_name}' must be a column name or a mapping")

    unknown = set(options) - OPTION_KEYS
    if unknown:
        raise InvalidFieldSpec(
            f"Unknown options {sorted(map(str, unknown))} for field '{attr_name}'. "
            f"Allowed: {', '.join(sorted(OPTION_KEYS))}"
        )
    column = options.get("column")
    return FieldDescriptor(
        attr_name=attr_name,
        data_name=_check_column(column if column is not None else attr_name, field),
        is_primary=bool(options.get("primary", False)),
        is_auto=bool(options.get("auto", False)),
        is_required=bool(options.get("required", False)),
    )


__all__ = ["FieldDescriptor", "FieldSpec", "IDENTIFIER", "OPTION_KEYS", "is_identifier", "normalize"]
