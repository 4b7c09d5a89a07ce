"""
Database connection factory for minorm.

Opens DB-API connections (stdlib sqlite3 or psycopg 3) and adapts them to the
`Handle` / `Statement` contracts the mapping engine consumes. Generated SQL
uses `?` placeholders; handles for drivers with a different paramstyle rewrite
them at execution time.

Connection attempts are driven by tenacity. The number of attempts comes from
settings (`DB_CONNECT_ATTEMPTS`) and defaults to a single try.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

import psycopg
from psycopg.rows import dict_row
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from minorm.config import build_dsn, get_settings
from minorm.errors import DatabaseConnectionError, ExecuteError, PrepareError
from minorm.infrastructure.abstract import ResultSet
from minorm.utils.logging import get_logger

log = get_logger(__name__)


def _to_format_paramstyle(sql: str) -> str:
    """Rewrite `?` placeholders to psycopg's `%s`, escaping literal percent signs."""
    return sql.replace("%", "%%").replace("?", "%s")


class DbApiStatement:
    """
    A statement bound to a `DbApiHandle`.

    DB-API drivers prepare lazily, so malformed SQL usually only surfaces here.
    Driver exceptions are re-raised as `ExecuteError` (or `PrepareError` for
    syntax errors the driver can tell apart) with the original chained.
    """

    def __init__(self, handle: "DbApiHandle", sql: str) -> None:
        self._handle = handle
        self.sql = sql

    def execute(self, *binds: Any) -> ResultSet:
        handle = self._handle
        text = self.sql
        params: Optional[Tuple[Any, ...]] = tuple(binds)
        if handle.paramstyle == "format":
            if binds:
                text = _to_format_paramstyle(text)
            else:
                params = None

        cursor = handle.connection.cursor()
        try:
            if params is None:
                cursor.execute(text)
            else:
                cursor.execute(text, params)
            rows = cursor.fetchall() if cursor.description else []
            columns = [col[0] for col in cursor.description or ()]
            return ResultSet(rows=rows, row_count=cursor.rowcount, columns=columns)
        except handle.syntax_errors as exc:
            raise PrepareError(f"{handle.driver}: {exc}") from exc
        except handle.driver_errors as exc:
            raise ExecuteError(f"{handle.driver}: {exc}") from exc
        finally:
            cursor.close()

    def __repr__(self) -> str:
        return f"DbApiStatement({self.sql!r})"


class DbApiHandle:
    """
    Adapter from a DB-API connection to the `Handle` contract.

    Usable as a context manager; leaving the block closes the connection.
    """

    def __init__(
        self,
        connection: Any,
        *,
        driver: str,
        paramstyle: str = "qmark",
        driver_errors: Tuple[Type[BaseException], ...] = (Exception,),
        syntax_errors: Tuple[Type[BaseException], ...] = (),
    ) -> None:
        self.connection = connection
        self.driver = driver
        self.paramstyle = paramstyle
        self.driver_errors = driver_errors
        self.syntax_errors = syntax_errors
        self.closed = False

    def prepare(self, sql: str) -> DbApiStatement:
        if self.closed:
            raise PrepareError(f"{self.driver}: handle is closed")
        if not sql or not sql.strip():
            raise PrepareError(f"{self.driver}: empty SQL statement")
        return DbApiStatement(self, sql)

    def close(self) -> None:
        if not self.closed:
            self.connection.close()
            self.closed = True

    def __enter__(self) -> "DbApiHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb
        self.close()


def _open_sqlite(options: Mapping[str, Any]) -> DbApiHandle:
    path = options.get("path") or get_settings().db_path
    try:
        conn = sqlite3.connect(path, isolation_level=None)
    except sqlite3.Error as exc:
        raise DatabaseConnectionError(f"sqlite: {exc}") from exc
    conn.row_factory = sqlite3.Row
    return DbApiHandle(conn, driver="sqlite", driver_errors=(sqlite3.Error,))


_DSN_PARTS = ("user", "password", "host", "port", "dbname")


def _open_postgres(options: Mapping[str, Any]) -> DbApiHandle:
    dsn = options.get("dsn") or build_dsn(
        get_settings(), **{key: options[key] for key in _DSN_PARTS if key in options}
    )
    try:
        conn = psycopg.connect(dsn, autocommit=True, row_factory=dict_row)
    except (psycopg.OperationalError, psycopg.InterfaceError) as exc:
        raise DatabaseConnectionError(f"postgres: {exc}") from exc
    return DbApiHandle(
        conn,
        driver="postgres",
        paramstyle="format",
        driver_errors=(psycopg.Error,),
        syntax_errors=(psycopg.errors.SyntaxError,),
    )


def _drivers() -> Dict[str, Callable[[Mapping[str, Any]], DbApiHandle]]:
    """Registry of available drivers."""
    return {
        "sqlite": _open_sqlite,
        "postgres": _open_postgres,
    }


def available_drivers() -> list[str]:
    """List available driver names."""
    return sorted(_drivers().keys())


def connect(
    driver_name: Optional[str] = None,
    options: Optional[Mapping[str, Any]] = None,
    attempts: Optional[int] = None,
) -> DbApiHandle:
    """
    Open a database handle.

    Parameters
    ----------
    driver_name : str, optional
        "sqlite" or "postgres". Defaults to settings.db_driver.
    options : mapping, optional
        Driver options ("path" for sqlite; "dsn" or host/port/user/password/dbname
        for postgres). Missing values fall back to settings.
    attempts : int, optional
        Connection attempts before giving up. Defaults to settings.db_connect_attempts.

    Returns
    -------
    DbApiHandle
        An open handle in autocommit mode.

    Raises
    ------
    ValueError
        If the driver name is unknown.
    DatabaseConnectionError
        If the connection fails after all attempts.
    """
    settings = get_settings()
    name = driver_name or settings.db_driver
    drivers = _drivers()
    if name not in drivers:
        raise ValueError(f"Unknown driver '{name}'. Available: {', '.join(drivers)}")
    opener = drivers[name]

    retrying = Retrying(
        stop=stop_after_attempt(attempts or settings.db_connect_attempts),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(DatabaseConnectionError),
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            handle = opener(dict(options or {}))
    log.debug("Opened database handle", extra={"driver": name})
    return handle


__all__ = [
    "DbApiHandle",
    "DbApiStatement",
    "available_drivers",
    "connect",
]
