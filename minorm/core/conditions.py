"""
Incremental WHERE-clause construction for SELECT queries.

Each predicate call appends one parenthesized group with one `column OP ?`
term per key. Groups are joined with AND unless `and_()` / `or_()` was called
right before; `match_any=True` joins the terms inside a group with OR:

    (model.query()
        .with_(status="open")
        .or_()
        .gt(priority=3, age=10, match_any=True)
        .rows())

    SELECT * FROM tickets WHERE (status = ?) OR (priority > ? OR age > ?)
    binds: ["open", 3, 10]

Bind values are kept in declaration order, matching placeholder order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Iterable, List, Optional, Tuple, TypeVar

from minorm.core.mapper import hydrate, hydrate_many
from minorm.domain.fields import is_identifier
from minorm.domain.row import Row
from minorm.errors import BuilderConsumed

if TYPE_CHECKING:  # pragma: no cover
    from minorm.core.model import Model

R = TypeVar("R", bound=Row)

OPERATORS = ("=", "<>", ">", "<", ">=", "<=", "LIKE")

Term = Tuple[str, str, Any]


def _check_column(column: Any) -> str:
    if not is_identifier(column):
        raise ValueError(f"Invalid column name {column!r}")
    return column


class ConditionBuilder(Generic[R]):
    """
    Single-use builder for `SELECT * FROM <table> WHERE ...` queries.

    `row()` and `rows()` execute the query and consume the builder; any later
    call raises BuilderConsumed.
    """

    def __init__(self, model: "Model[R]", base_sql: Optional[str] = None) -> None:
        self._model = model
        self._base_sql = base_sql or f"SELECT * FROM {model.table}"
        self._parts: List[str] = []
        self._binds: List[Any] = []
        self._joiner: Optional[str] = None
        self._consumed = False

    # -- state ---------------------------------------------------------------

    @property
    def sql(self) -> str:
        return " ".join([self._base_sql, *self._parts])

    @property
    def binds(self) -> Tuple[Any, ...]:
        return tuple(self._binds)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def build(self) -> Tuple[str, List[Any]]:
        """Return the SQL text and bind values without executing."""
        self._ensure_open()
        return self.sql, list(self._binds)

    def _ensure_open(self) -> None:
        if self._consumed:
            raise BuilderConsumed("ConditionBuilder was already executed")

    def _append(self, terms: List[Term], match_any: bool) -> "ConditionBuilder[R]":
        self._ensure_open()
        if not terms:
            return self
        if not self._parts:
            self._parts.append("WHERE")
        else:
            self._parts.append(self._joiner or "AND")
        self._joiner = None

        glue = " OR " if match_any else " AND "
        self._parts.append("(" + glue.join(f"{column} {op} ?" for column, op, _ in terms) + ")")
        self._binds.extend(value for _, _, value in terms)
        return self

    def _keyword_group(
        self, op: str, pairs: Iterable[Tuple[str, Any]], kwargs: dict, match_any: bool
    ) -> "ConditionBuilder[R]":
        terms: List[Term] = []
        for pair in pairs:
            if not isinstance(pair, tuple) or len(pair) != 2:
                raise ValueError(f"Expected a (column, value) pair, got {pair!r}")
            terms.append((_check_column(pair[0]), op, pair[1]))
        for column, value in kwargs.items():
            terms.append((_check_column(column), op, value))
        return self._append(terms, match_any)

    # -- predicates ----------------------------------------------------------

    def where(self, *conditions: Term, match_any: bool = False) -> "ConditionBuilder[R]":
        """
        Append a group built from explicit `(column, operator, value)` triples.

        Raises
        ------
        ValueError
            On a malformed triple, an invalid column name or an unsupported operator.
        """
        terms: List[Term] = []
        for condition in conditions:
            if not isinstance(condition, tuple) or len(condition) != 3:
                raise ValueError(f"Expected a (column, operator, value) triple, got {condition!r}")
            column, op, value = condition
            op = str(op).upper()
            if op == "!=":
                op = "<>"
            if op not in OPERATORS:
                raise ValueError(f"Unsupported operator {op!r}. Allowed: {', '.join(OPERATORS)}")
            terms.append((_check_column(column), op, value))
        return self._append(terms, match_any)

    def with_(self, *pairs: Tuple[str, Any], match_any: bool = False, **kwargs: Any) -> "ConditionBuilder[R]":
        """Equality: `column = ?` per key."""
        return self._keyword_group("=", pairs, kwargs, match_any)

    def not_(self, *pairs: Tuple[str, Any], match_any: bool = False, **kwargs: Any) -> "ConditionBuilder[R]":
        """Inequality: `column <> ?` per key."""
        return self._keyword_group("<>", pairs, kwargs, match_any)

    def gt(self, *pairs: Tuple[str, Any], match_any: bool = False, **kwargs: Any) -> "ConditionBuilder[R]":
        return self._keyword_group(">", pairs, kwargs, match_any)

    def lt(self, *pairs: Tuple[str, Any], match_any: bool = False, **kwargs: Any) -> "ConditionBuilder[R]":
        return self._keyword_group("<", pairs, kwargs, match_any)

    def gte(self, *pairs: Tuple[str, Any], match_any: bool = False, **kwargs: Any) -> "ConditionBuilder[R]":
        return self._keyword_group(">=", pairs, kwargs, match_any)

    def lte(self, *pairs: Tuple[str, Any], match_any: bool = False, **kwargs: Any) -> "ConditionBuilder[R]":
        return self._keyword_group("<=", pairs, kwargs, match_any)

    def like(self, *pairs: Tuple[str, Any], match_any: bool = False, **kwargs: Any) -> "ConditionBuilder[R]":
        """Pattern match: `column LIKE ?` per key; the pattern is bound as given."""
        return self._keyword_group("LIKE", pairs, kwargs, match_any)

    def and_(self) -> "ConditionBuilder[R]":
        """Join the next group with AND."""
        self._ensure_open()
        self._joiner = "AND"
        return self

    def or_(self) -> "ConditionBuilder[R]":
        """Join the next group with OR."""
        self._ensure_open()
        self._joiner = "OR"
        return self

    # -- terminal operations -------------------------------------------------

    def _execute(self, sql: str):
        self._ensure_open()
        self._consumed = True
        return self._model.execute(sql, self._binds)

    def row(self) -> Optional[R]:
        """Return the first matching row, or None when nothing matches."""
        result = self._execute(f"{self.sql} LIMIT 1")
        first = result.first()
        if first is None:
            return None
        return hydrate(self._model.row_type, first, self._model)

    def rows(self) -> List[R]:
        """Return every matching row, in result order."""
        result = self._execute(self.sql)
        return hydrate_many(self._model.row_type, result, self._model)

    def __repr__(self) -> str:
        return f"ConditionBuilder({self.sql!r}, binds={self._binds!r})"


__all__ = ["OPERATORS", "ConditionBuilder"]
