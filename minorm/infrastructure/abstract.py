"""
Driver contracts consumed by the mapping engine.

The engine only ever talks to a `Handle` (prepare SQL) and a `Statement`
(execute with positional binds). Concrete drivers live in
`minorm.infrastructure.db_factory`; tests substitute recording fakes that
satisfy the same protocols.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple, overload, runtime_checkable

RawRow = Dict[str, Any]


class ResultSet(Sequence):
    """
    Ordered rows returned by `Statement.execute`.

    Each row is a column-name -> value mapping. `row_count` is the driver's
    affected-row count for writes, or the number of fetched rows for reads.
    """

    def __init__(
        self,
        rows: Iterable[RawRow] = (),
        row_count: Optional[int] = None,
        columns: Iterable[str] = (),
    ) -> None:
        self._rows: List[RawRow] = [dict(row) for row in rows]
        self.columns: Tuple[str, ...] = tuple(columns)
        self.row_count: int = len(self._rows) if row_count is None or row_count < 0 else row_count

    @overload
    def __getitem__(self, index: int) -> RawRow: ...

    @overload
    def __getitem__(self, index: slice) -> List[RawRow]: ...

    def __getitem__(self, index):
        return self._rows[index]

    def __len__(self) -> int:
        return len(self._rows)

    def first(self) -> Optional[RawRow]:
        """Return the first row, or None when the result is empty."""
        return self._rows[0] if self._rows else None

    def __repr__(self) -> str:
        return f"ResultSet(rows={len(self._rows)}, row_count={self.row_count})"


@runtime_checkable
class Statement(Protocol):
    """A prepared SQL statement using `?` positional placeholders."""

    sql: str

    def execute(self, *binds: Any) -> ResultSet:
        """
        Execute the statement with positional bind values.

        Raises
        ------
        ExecuteError
            When the driver rejects the execution.
        """
        ...


@runtime_checkable
class Handle(Protocol):
    """An open database connection able to prepare statements."""

    def prepare(self, sql: str) -> Statement:
        """
        Prepare a statement.

        Raises
        ------
        PrepareError
            When the SQL text is empty or malformed.
        """
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...


__all__ = ["RawRow", "ResultSet", "Statement", "Handle"]
