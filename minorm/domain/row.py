"""
Row types and their resolved schemas.

Application code subclasses `Row` and declares `fields`; optional
`on_load_<attr>` / `on_save_<attr>` methods transform values on their way in
from and out to the database:

    class User(Row):
        fields = [
            ("id", {"primary": True, "auto": True}),
            ("name", {"column": "full_name", "required": True}),
            "email",
        ]

        def on_load_email(self, value):
            return value.lower() if value else value

The declaration is normalized once per class into a `RowSchema`.
"""
from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Sequence, Tuple, Type

from minorm.config import get_settings
from minorm.domain.fields import FieldDescriptor, FieldSpec, is_identifier, normalize
from minorm.errors import (
    AmbiguousPrimaryKey,
    InvalidFieldSpec,
    MissingFieldMetadata,
    UnboundRow,
)

if TYPE_CHECKING:  # pragma: no cover
    from minorm.core.model import Model

LOAD_HOOK_PREFIX = "on_load_"
SAVE_HOOK_PREFIX = "on_save_"


class RowSchema:
    """
    Normalized mapping metadata for one row type.

    Attributes
    ----------
    fields : tuple[FieldDescriptor, ...]
        Descriptors in declaration order.
    primary_key_name : str
        Column holding the primary key: the primary descriptor's column, or the
        configured default ("id").
    load_hooks, save_hooks : dict[str, str]
        Attribute name -> name of the hook method defined on the row type.
    """

    def __init__(
        self,
        row_type: type,
        fields: Tuple[FieldDescriptor, ...],
        primary_key_name: str,
        load_hooks: Dict[str, str],
        save_hooks: Dict[str, str],
    ) -> None:
        self.row_type = row_type
        self.fields = fields
        self.primary_key_name = primary_key_name
        self.load_hooks = load_hooks
        self.save_hooks = save_hooks
        self._by_attr = {f.attr_name: f for f in fields}

    @classmethod
    def resolve(cls, row_type: type, default_primary_key: Optional[str] = None) -> "RowSchema":
        declared = getattr(row_type, "fields", None)
        if not declared:
            raise MissingFieldMetadata(f"{row_type.__name__} declares no fields")

        fields = tuple(normalize(spec) for spec in declared)
        seen: set[str] = set()
        for f in fields:
            if f.attr_name in seen:
                raise InvalidFieldSpec(f"Duplicate field '{f.attr_name}' in {row_type.__name__}")
            if f.attr_name in RESERVED_NAMES or f.attr_name.startswith("_"):
                raise InvalidFieldSpec(
                    f"Field '{f.attr_name}' of {row_type.__name__} shadows a Row member"
                )
            seen.add(f.attr_name)

        primaries = [f for f in fields if f.is_primary]
        if len(primaries) > 1:
            raise AmbiguousPrimaryKey(
                f"{row_type.__name__} flags several primary keys: "
                f"{', '.join(f.attr_name for f in primaries)}"
            )
        if primaries:
            primary_key_name = primaries[0].data_name
        else:
            primary_key_name = default_primary_key or get_settings().default_primary_key
            if not is_identifier(primary_key_name):
                raise InvalidFieldSpec(f"Invalid primary key column {primary_key_name!r}")

        return cls(
            row_type=row_type,
            fields=fields,
            primary_key_name=primary_key_name,
            load_hooks=_discover_hooks(row_type, fields, LOAD_HOOK_PREFIX),
            save_hooks=_discover_hooks(row_type, fields, SAVE_HOOK_PREFIX),
        )

    def field(self, attr_name: str) -> Optional[FieldDescriptor]:
        return self._by_attr.get(attr_name)

    @property
    def primary_field(self) -> Optional[FieldDescriptor]:
        """The descriptor mapped to the primary-key column, if declared."""
        for f in self.fields:
            if f.data_name == self.primary_key_name:
                return f
        return None

    def __repr__(self) -> str:
        return (
            f"RowSchema({self.row_type.__name__}, "
            f"fields={[f.attr_name for f in self.fields]}, pk={self.primary_key_name!r})"
        )


def _discover_hooks(row_type: type, fields: Sequence[FieldDescriptor], prefix: str) -> Dict[str, str]:
    hooks: Dict[str, str] = {}
    for f in fields:
        name = f"{prefix}{f.attr_name}"
        if callable(getattr(row_type, name, None)):
            hooks[f.attr_name] = name
    return hooks


class Row:
    """
    Base class for mapped row types.

    A row built by the application (`User(model, name="x")` or
    `model.create(name="x")`) starts with `new_item = True`; rows hydrated from
    query results start with `new_item = False`. Fields without a value take
    a shallow copy of the class-level default of the same name, else None.
    """

    fields: ClassVar[Optional[Sequence[FieldSpec]]] = None

    def __init__(self, model: Optional["Model"] = None, /, **data: Any) -> None:
        schema = type(self).schema()
        unknown = set(data) - {f.attr_name for f in schema.fields}
        if unknown:
            raise TypeError(
                f"{type(self).__name__} got unexpected fields: {', '.join(sorted(unknown))}"
            )
        self._model = model
        self.new_item = True
        self.primary_key_name = schema.primary_key_name
        for f in schema.fields:
            if f.attr_name in data:
                setattr(self, f.attr_name, data[f.attr_name])
            else:
                # each instance gets its own copy of a mutable class default
                setattr(self, f.attr_name, copy.copy(getattr(type(self), f.attr_name, None)))

    @classmethod
    def schema(cls) -> RowSchema:
        """Return the schema for this row type, resolving it on first use."""
        cached = cls.__dict__.get("_schema")
        if cached is None:
            cached = RowSchema.resolve(cls)
            cls._schema = cached
        return cached

    @property
    def model(self) -> Optional["Model"]:
        return self._model

    def save(self) -> "Row":
        """Persist this row through its Model (insert or update)."""
        if self._model is None:
            raise UnboundRow(f"{type(self).__name__} is not attached to a Model")
        return self._model.save(self)

    def to_dict(self) -> Dict[str, Any]:
        return {f.attr_name: getattr(self, f.attr_name) for f in type(self).schema().fields}

    def __repr__(self) -> str:
        values = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"{type(self).__name__}({values})"


RESERVED_NAMES = frozenset(
    name for name in vars(Row) if not name.startswith("__")
) | {"new_item", "primary_key_name"}


def define_row(name: str, fields: Sequence[FieldSpec]) -> Type[Row]:
    """Build a Row subclass at runtime from a field list."""
    return type(name, (Row,), {"fields": list(fields)})


__all__ = [
    "LOAD_HOOK_PREFIX",
    "SAVE_HOOK_PREFIX",
    "RESERVED_NAMES",
    "Row",
    "RowSchema",
    "define_row",
]
