"""
Row hydration: raw column -> value mappings into row instances.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional, Type, TypeVar

from minorm.domain.row import Row

if TYPE_CHECKING:  # pragma: no cover
    from minorm.core.model import Model

R = TypeVar("R", bound=Row)


def hydrate(row_type: Type[R], raw_columns: Mapping[str, Any], model: Optional["Model"] = None) -> R:
    """
    Build an existing (`new_item = False`) instance of `row_type` from one raw row.

    Columns absent from `raw_columns` leave the attribute at its default;
    columns the row type does not declare are ignored. When the row type
    defines `on_load_<attr>`, the raw value is passed through it first.

    Raises
    ------
    MissingFieldMetadata
        If the row type declares no fields.
    """
    schema = row_type.schema()
    instance = row_type(model)
    instance.new_item = False
    for f in schema.fields:
        if f.data_name not in raw_columns:
            continue
        value = raw_columns[f.data_name]
        hook = schema.load_hooks.get(f.attr_name)
        if hook is not None:
            value = getattr(instance, hook)(value)
        setattr(instance, f.attr_name, value)
    return instance


def hydrate_many(
    row_type: Type[R], raw_rows: Iterable[Mapping[str, Any]], model: Optional["Model"] = None
) -> List[R]:
    """Hydrate each raw row in order."""
    return [hydrate(row_type, raw, model) for raw in raw_rows]


__all__ = ["hydrate", "hydrate_many"]
