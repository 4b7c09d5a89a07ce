"""
Model: a table bound to a row type and a lazily opened database handle.

    class User(Row):
        fields = [("id", {"primary": True, "auto": True}), "name"]

    with Model("users", User, driver="sqlite", options={"path": "app.db"}) as users:
        alice = users.create(name="alice").save()
        same = users.with_(name="alice").row()

The handle is opened on first use and reused until `close()` (or the end of
the `with` block). A handle passed in by the caller is never closed here.
Models are not thread-safe.
"""

from __future__ import annotations

from typing import Any, Generic, List, Mapping, Optional, Sequence, Type, TypeVar

from minorm.core.conditions import ConditionBuilder
from minorm.core.mapper import hydrate
from minorm.core.persistence import SaveResolver
from minorm.domain.fields import is_identifier
from minorm.domain.row import Row, RowSchema
from minorm.infrastructure.abstract import Handle, ResultSet
from minorm.infrastructure.db_factory import connect
from minorm.utils.logging import get_logger

log = get_logger(__name__)

R = TypeVar("R", bound=Row)


class Model(Generic[R]):
    """
    Table gateway for one row type.

    Parameters
    ----------
    table : str
        Table name, optionally schema-qualified.
    row_type : type[Row]
        Row class to hydrate results into.
    driver : str, optional
        Driver name passed to `connect`; defaults to settings.db_driver.
    options : mapping, optional
        Driver options passed to `connect`.
    handle : Handle, optional
        An already open handle to use instead of connecting.
    """

    def __init__(
        self,
        table: str,
        row_type: Type[R],
        *,
        driver: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
        handle: Optional[Handle] = None,
    ) -> None:
        if not is_identifier(table):
            raise ValueError(f"Invalid table name {table!r}")
        self.table = table
        self.row_type = row_type
        # fails fast on a row type without fields
        self.schema: RowSchema = row_type.schema()
        self._driver = driver
        self._options = dict(options or {})
        self._handle: Optional[Handle] = handle
        self._owns_handle = handle is None

    @property
    def db(self) -> Handle:
        """The database handle, opened on first access."""
        if self._handle is None:
            self._handle = connect(self._driver, self._options)
            self._owns_handle = True
        return self._handle

    def execute(self, sql: str, binds: Sequence[Any] = ()) -> ResultSet:
        """Prepare and execute one statement on this model's handle."""
        log.debug(
            "Executing statement",
            extra={"table": self.table, "sql": sql, "binds": len(binds)},
        )
        return self.db.prepare(sql).execute(*binds)

    # -- queries -------------------------------------------------------------

    def query(self) -> ConditionBuilder[R]:
        """Start a new single-use query on this table."""
        return ConditionBuilder(self)

    def where(self, *conditions, match_any: bool = False) -> ConditionBuilder[R]:
        return self.query().where(*conditions, match_any=match_any)

    def with_(self, *pairs, match_any: bool = False, **kwargs: Any) -> ConditionBuilder[R]:
        return self.query().with_(*pairs, match_any=match_any, **kwargs)

    def not_(self, *pairs, match_any: bool = False, **kwargs: Any) -> ConditionBuilder[R]:
        return self.query().not_(*pairs, match_any=match_any, **kwargs)

    def gt(self, *pairs, match_any: bool = False, **kwargs: Any) -> ConditionBuilder[R]:
        return self.query().gt(*pairs, match_any=match_any, **kwargs)

    def lt(self, *pairs, match_any: bool = False, **kwargs: Any) -> ConditionBuilder[R]:
        return self.query().lt(*pairs, match_any=match_any, **kwargs)

    def gte(self, *pairs, match_any: bool = False, **kwargs: Any) -> ConditionBuilder[R]:
        return self.query().gte(*pairs, match_any=match_any, **kwargs)

    def lte(self, *pairs, match_any: bool = False, **kwargs: Any) -> ConditionBuilder[R]:
        return self.query().lte(*pairs, match_any=match_any, **kwargs)

    def like(self, *pairs, match_any: bool = False, **kwargs: Any) -> ConditionBuilder[R]:
        return self.query().like(*pairs, match_any=match_any, **kwargs)

    def all(self) -> List[R]:
        return self.query().rows()

    def find(self, primary_key_value: Any) -> Optional[R]:
        """Fetch the row whose primary key equals the given value, or None."""
        return self.query().with_((self.schema.primary_key_name, primary_key_value)).row()

    # -- rows ----------------------------------------------------------------

    def create(self, **data: Any) -> R:
        """Build a new, unsaved row bound to this model."""
        return self.row_type(self, **data)

    def hydrate(self, raw_columns: Mapping[str, Any]) -> R:
        return hydrate(self.row_type, raw_columns, self)

    def save(self, row: R) -> R:
        return SaveResolver(self).save(row)

    # -- lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """Close the handle if this model opened it."""
        if self._handle is not None and self._owns_handle:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "Model[R]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb
        self.close()

    def __repr__(self) -> str:
        return f"Model({self.table!r}, {self.row_type.__name__})"


__all__ = ["Model"]
