from __future__ import annotations

import sys
from typing import List, Optional, Tuple

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from minorm.config import get_settings
from minorm.core.model import Model
from minorm.domain.row import Row, define_row
from minorm.utils.logging import configure_logging

app = typer.Typer(help="minorm command line: inspect settings and query tables.")


def _parse_pairs(values: Optional[List[str]], option: str) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for item in values or []:
        column, sep, value = item.partition("=")
        if not sep or not column:
            raise typer.BadParameter(f"Expected column=value, got '{item}'", param_hint=option)
        pairs.append((column.strip(), value))
    return pairs


def _render(rows: List[Row], fields: List[str], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    for name in fields:
        table.add_column(name)
    for row in rows:
        table.add_row(*("" if getattr(row, f) is None else str(getattr(row, f)) for f in fields))
    return table


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    if settings.db_driver == "sqlite":
        target = settings.db_path
    else:
        target = f"{settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    typer.echo(
        f"driver={settings.db_driver} | DB={target} | "
        f"default_pk={settings.default_primary_key} attempts={settings.db_connect_attempts}"
    )


@app.command()
def query(
    table: str = typer.Argument(..., help="Table to query."),
    fields: List[str] = typer.Option(
        ..., "--field", "-f", help="Column to map and display (repeatable)."
    ),
    where: Optional[List[str]] = typer.Option(
        None, "--where", "-w", help="Equality filter column=value (repeatable)."
    ),
    like: Optional[List[str]] = typer.Option(
        None, "--like", "-l", help="LIKE filter column=pattern (repeatable)."
    ),
    match_any: bool = typer.Option(
        False, "--any", help="Join the terms of each filter group with OR."
    ),
    one: bool = typer.Option(False, "--one", help="Return only the first matching row."),
) -> None:
    """
    Select rows from TABLE, filtered by the given predicates.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    row_type = define_row("QueryRow", fields)
    with Model(table, row_type) as model:
        builder = model.query()
        builder.with_(*_parse_pairs(where, "--where"), match_any=match_any)
        builder.like(*_parse_pairs(like, "--like"), match_any=match_any)
        if one:
            found = builder.row()
            rows = [found] if found is not None else []
        else:
            rows = builder.rows()

    Console().print(_render(rows, fields, title=f"{table} ({len(rows)} rows)"))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
