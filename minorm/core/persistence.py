"""
Save path: insert-vs-update resolution and statement construction.

`SaveResolver.save` runs in two phases. Extraction walks the row type's
fields, applies `on_save_<attr>` hooks and validates the values; nothing is
sent to the database if it fails. Execution issues the INSERT or UPDATE and,
for inserts whose primary key is generated by the database, queries the key
back using the values just written.

Key recovery does not depend on a driver-specific "last insert id" call, so it
is only correct when the written values identify a single row.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Tuple

from minorm.domain.row import Row
from minorm.errors import InvalidSaveState, MissingPrimaryKey, RequiredFieldMissing
from minorm.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from minorm.core.model import Model

log = get_logger(__name__)


@dataclass
class WriteSet:
    """
    Columns and values extracted from a row for one save.
    """

    names: List[str] = field(default_factory=list)
    values: List[Any] = field(default_factory=list)
    primary_key_value: Optional[Any] = None
    is_insert: bool = False
    recover_key: bool = False


def _is_numeric_literal(value: Any) -> bool:
    # inf and NaN have no portable SQL literal
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return False


def insert_statement(table: str, names: Sequence[str]) -> str:
    placeholders = ", ".join("?" for _ in names)
    return f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders})"


def update_statement(
    table: str, names: Sequence[str], primary_key_name: str, primary_key_value: Any
) -> Tuple[str, List[Any]]:
    """
    Build an UPDATE keyed on the primary key.

    Integer and finite float or Decimal key values are written into the WHERE
    clause as literals; any other value is bound as a trailing parameter.
    Returns the SQL and the extra binds to append after the SET values.
    """
    assignments = ", ".join(f"{name}=?" for name in names)
    if _is_numeric_literal(primary_key_value):
        return f"UPDATE {table} SET {assignments} WHERE {primary_key_name} = {primary_key_value}", []
    return f"UPDATE {table} SET {assignments} WHERE {primary_key_name} = ?", [primary_key_value]


def key_recovery_statement(table: str, primary_key_name: str, names: Sequence[str]) -> str:
    conditions = " AND ".join(f"{name} = ?" for name in names)
    return f"SELECT {primary_key_name} FROM {table} WHERE {conditions} LIMIT 1"


class SaveResolver:
    """Persist row instances of one Model."""

    def __init__(self, model: "Model") -> None:
        self._model = model

    def extract(self, row: Row) -> WriteSet:
        """
        Collect the write set for `row` and decide between insert and update.

        Raises
        ------
        MissingPrimaryKey
            The key is unset and not auto-generated, or an update has no key value.
        RequiredFieldMissing
            A required field is unset.
        InvalidSaveState
            Nothing would be written.
        """
        schema = type(row).schema()
        ws = WriteSet()

        for f in schema.fields:
            value = getattr(row, f.attr_name, None)
            hook = schema.save_hooks.get(f.attr_name)
            if hook is not None:
                value = getattr(row, hook)(value)

            if f.data_name == row.primary_key_name:
                if value is not None:
                    ws.primary_key_value = value
                    # the key never changes on update
                    if not row.new_item:
                        continue
                elif f.is_auto:
                    ws.recover_key = True
                    continue
                else:
                    raise MissingPrimaryKey(
                        f"{type(row).__name__}.{f.attr_name} has no value and is not auto-generated"
                    )
            elif value is None:
                if f.is_required:
                    raise RequiredFieldMissing(f"{type(row).__name__}.{f.attr_name} is required")
                continue

            ws.names.append(f.data_name)
            ws.values.append(value)

        if not ws.names or len(ws.names) != len(ws.values):
            raise InvalidSaveState(f"Nothing to write for {type(row).__name__}")

        ws.is_insert = row.new_item or ws.recover_key
        if not ws.is_insert and ws.primary_key_value is None:
            raise MissingPrimaryKey(
                f"Cannot update {type(row).__name__}: no value for '{row.primary_key_name}'"
            )
        return ws

    def save(self, row: Row) -> Row:
        """
        Insert or update `row` and mark it as stored.

        Driver errors propagate unchanged; the row is left untouched when the
        write fails.
        """
        ws = self.extract(row)
        table = self._model.table

        if ws.is_insert:
            sql = insert_statement(table, ws.names)
            binds = list(ws.values)
        else:
            sql, extra = update_statement(table, ws.names, row.primary_key_name, ws.primary_key_value)
            binds = [*ws.values, *extra]

        self._model.execute(sql, binds)
        row.new_item = False

        if ws.recover_key:
            self._recover_key(row, ws)
        return row

    def _recover_key(self, row: Row, ws: WriteSet) -> None:
        schema = type(row).schema()
        primary = schema.primary_field
        sql = key_recovery_statement(self._model.table, row.primary_key_name, ws.names)
        first = self._model.execute(sql, ws.values).first()
        if first is None:
            log.warning(
                "Generated key not found after insert",
                extra={"table": self._model.table, "primary_key": row.primary_key_name},
            )
            return
        setattr(row, primary.attr_name, next(iter(first.values())))


__all__ = [
    "SaveResolver",
    "WriteSet",
    "insert_statement",
    "key_recovery_statement",
    "update_statement",
]
