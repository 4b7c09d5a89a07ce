from __future__ import annotations

import pytest

from minorm.core.conditions import OPERATORS, ConditionBuilder
from minorm.core.model import Model
from minorm.domain.row import Row
from minorm.errors import BuilderConsumed


class Ticket(Row):
    fields = ["id", "status", "priority", "title"]


@pytest.fixture
def tickets(recording_handle) -> Model:
    return Model("tickets", Ticket, handle=recording_handle)


def test_first_predicate_inserts_where_once(tickets):
    builder = tickets.query().with_(status="open").with_(priority=2)

    assert builder.sql == "SELECT * FROM tickets WHERE (status = ?) AND (priority = ?)"
    assert builder.binds == ("open", 2)


def test_keys_within_a_call_are_joined_with_and(tickets):
    builder = tickets.with_(status="open", priority=2)

    assert builder.sql == "SELECT * FROM tickets WHERE (status = ? AND priority = ?)"


def test_match_any_joins_terms_with_or(tickets):
    builder = tickets.with_(status="open", priority=2, match_any=True)

    assert builder.sql == "SELECT * FROM tickets WHERE (status = ? OR priority = ?)"


def test_explicit_or_joins_groups(tickets):
    builder = tickets.with_(status="open").or_().gt(priority=3)

    assert builder.sql == "SELECT * FROM tickets WHERE (status = ?) OR (priority > ?)"


def test_explicit_and_joins_groups(tickets):
    builder = tickets.with_(status="open").and_().like(title="%bug%")

    assert builder.sql == "SELECT * FROM tickets WHERE (status = ?) AND (title LIKE ?)"


def test_joiner_applies_only_to_next_group(tickets):
    builder = tickets.with_(status="open").or_().with_(status="new").lt(priority=5)

    assert builder.sql == (
        "SELECT * FROM tickets WHERE (status = ?) OR (status = ?) AND (priority < ?)"
    )


def test_joiner_before_first_group_is_dropped(tickets):
    builder = tickets.query().or_().with_(status="open")

    assert builder.sql == "SELECT * FROM tickets WHERE (status = ?)"


@pytest.mark.parametrize(
    "method, op",
    [
        ("with_", "="),
        ("not_", "<>"),
        ("gt", ">"),
        ("lt", "<"),
        ("gte", ">="),
        ("lte", "<="),
        ("like", "LIKE"),
    ],
)
def test_predicate_operators(tickets, method, op):
    builder = getattr(tickets.query(), method)(priority=1)

    assert builder.sql == f"SELECT * FROM tickets WHERE (priority {op} ?)"
    assert builder.binds == (1,)


def test_positional_pairs_come_before_keywords(tickets):
    builder = tickets.with_(("status", "open"), priority=1)

    assert builder.sql == "SELECT * FROM tickets WHERE (status = ? AND priority = ?)"
    assert builder.binds == ("open", 1)


def test_where_takes_explicit_triples(tickets):
    builder = tickets.where(("priority", ">=", 2), ("status", "!=", "closed"), match_any=True)

    assert builder.sql == "SELECT * FROM tickets WHERE (priority >= ? OR status <> ?)"
    assert builder.binds == (2, "closed")
    assert set(OPERATORS) >= {">=", "<>"}


@pytest.mark.parametrize(
    "condition",
    [("priority", "BETWEEN", 1), ("priority", ">"), "priority > 1"],
)
def test_where_rejects_malformed_conditions(tickets, condition):
    with pytest.raises(ValueError):
        tickets.where(condition)


@pytest.mark.parametrize("column", ["", "1col", "name; DROP TABLE tickets", "a b"])
def test_invalid_column_names_are_rejected(tickets, column):
    with pytest.raises(ValueError, match="Invalid column"):
        tickets.with_((column, 1))


def test_empty_predicate_call_appends_nothing(tickets):
    builder = tickets.with_().with_(status="open").gt()

    assert builder.sql == "SELECT * FROM tickets WHERE (status = ?)"


@pytest.mark.parametrize("calls", [1, 2, 5])
@pytest.mark.parametrize("keys_per_call", [1, 3])
def test_bind_order_matches_declaration_order(tickets, recording_handle, calls, keys_per_call):
    builder = tickets.query()
    expected = []
    for call in range(calls):
        pairs = [(f"c{key}", f"v{call}.{key}") for key in range(keys_per_call)]
        builder.gte(*pairs)
        expected.extend(value for _, value in pairs)

    sql, binds = builder.build()
    assert binds == expected
    assert sql.count("?") == calls * keys_per_call

    builder.rows()
    assert recording_handle.calls == [(sql, expected)]


def test_rows_returns_hydrated_rows_in_order(tickets, recording_handle):
    recording_handle.results = [
        [
            {"id": 1, "status": "open", "priority": 3, "title": "a"},
            {"id": 2, "status": "open", "priority": 1, "title": "b"},
        ]
    ]

    rows = tickets.with_(status="open").rows()

    assert [r.id for r in rows] == [1, 2]
    assert all(isinstance(r, Ticket) and r.new_item is False for r in rows)
    assert recording_handle.calls == [("SELECT * FROM tickets WHERE (status = ?)", ["open"])]


def test_rows_with_no_match_is_empty(tickets):
    assert tickets.with_(status="missing").rows() == []


def test_row_appends_limit_and_returns_first(tickets, recording_handle):
    recording_handle.results = [[{"id": 9, "status": "open"}]]

    row = tickets.with_(status="open").row()

    assert row.id == 9
    assert row.priority is None
    assert recording_handle.statements == ["SELECT * FROM tickets WHERE (status = ?) LIMIT 1"]


def test_row_with_no_match_returns_none(tickets, recording_handle):
    assert tickets.with_(status="missing").row() is None
    assert len(recording_handle.calls) == 1


def test_builder_is_consumed_by_terminal_operation(tickets):
    builder = tickets.with_(status="open")
    builder.rows()

    assert builder.consumed
    with pytest.raises(BuilderConsumed):
        builder.with_(priority=1)
    with pytest.raises(BuilderConsumed):
        builder.row()
    with pytest.raises(BuilderConsumed):
        builder.build()


def test_build_returns_a_copy_of_binds(tickets):
    builder = tickets.with_(status="open")
    _, binds = builder.build()
    binds.append("tampered")

    assert builder.binds == ("open",)


def test_all_selects_without_where(tickets, recording_handle):
    tickets.all()

    assert recording_handle.statements == ["SELECT * FROM tickets"]


def test_find_uses_primary_key(tickets, recording_handle):
    tickets.find(4)

    assert recording_handle.calls == [("SELECT * FROM tickets WHERE (id = ?) LIMIT 1", [4])]


def test_custom_base_statement(tickets):
    builder = ConditionBuilder(tickets, base_sql="SELECT id FROM tickets")

    assert builder.with_(status="x").sql == "SELECT id FROM tickets WHERE (status = ?)"
