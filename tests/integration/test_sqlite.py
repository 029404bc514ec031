"""Integration tests: render → execute against a real SQLite in-memory DB.

Covers SELECT (filters, nested groups, IN lists, IN / EXISTS subqueries,
joins, aggregates, paging), batch INSERT, UPDATE / DELETE with and without
the all-rows marker, NULL and BLOB values, reserved-word identifiers, and
transaction control text (commit, rollback, savepoints).
"""
from __future__ import annotations

import sqlite3

import pytest

from chainql import (
    GT,
    GTE,
    LIKE,
    Value,
    count,
    count_distinct,
    delete,
    insert,
    subquery_as,
    sum_,
    table,
    transaction,
    update,
)

DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT,
    age INTEGER,
    status TEXT,
    role TEXT,
    deleted_at TEXT,
    avatar BLOB
);
CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id),
    total REAL NOT NULL,
    status TEXT NOT NULL
);
CREATE TABLE "order" (
    id INTEGER PRIMARY KEY,
    "group" TEXT,
    created_at TEXT
);
"""


@pytest.fixture()
def db() -> sqlite3.Connection:
    conn = sqlite3.connect(":memory:", isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.executescript(DDL)

    _exec(
        conn,
        insert("users").values(
            [
                {"id": 1, "name": "Alice", "email": "alice@acme.com", "age": 34,
                 "status": "active", "role": "admin", "deleted_at": None},
                {"id": 2, "name": "Bob", "email": "bob@acme.com", "age": 17,
                 "status": "active", "role": "member", "deleted_at": None},
                {"id": 3, "name": "Charlie", "email": None, "age": 52,
                 "status": "premium", "role": "member", "deleted_at": None},
                {"id": 4, "name": "Diana", "email": "diana@acme.com", "age": 41,
                 "status": "inactive", "role": "member", "deleted_at": "2024-05-01"},
            ]
        ),
    )
    _exec(
        conn,
        insert("orders").values(
            [
                {"id": 1, "user_id": 1, "total": 120.0, "status": "paid"},
                {"id": 2, "user_id": 1, "total": 30.0, "status": "paid"},
                {"id": 3, "user_id": 3, "total": 250.0, "status": "refunded"},
                {"id": 4, "user_id": 3, "total": 80.0, "status": "paid"},
                {"id": 5, "user_id": 3, "total": 15.0, "status": "paid"},
            ]
        ),
    )
    yield conn
    conn.close()


def _exec(conn: sqlite3.Connection, statement) -> sqlite3.Cursor:
    compiled = statement.to_sql("sqlite")
    return conn.execute(compiled.sql, compiled.bind_params())


def _rows(conn: sqlite3.Connection, statement) -> list[tuple]:
    return [tuple(row) for row in _exec(conn, statement).fetchall()]


# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------


def test_select_and_chain(db):
    q = (
        table("users")
        .select("id", "name")
        .where(("age", GT, 18))
        .and_where(("status", "active"))
    )
    assert _rows(db, q) == [(1, "Alice")]


def test_select_or_chain(db):
    q = table("users").select("name").where(("role", "admin")).or_where(("status", "premium"))
    assert sorted(_rows(db, q)) == [("Alice",), ("Charlie",)]


def test_nested_groups(db):
    q = (
        table("users")
        .select("name")
        .where_null("deleted_at")
        .where(lambda g: g.where(("age", "<", 18)).or_where(("email", LIKE, "alice%")))
        .order_by("name")
    )
    assert _rows(db, q) == [("Alice",), ("Bob",)]


def test_where_not(db):
    q = table("users").select("id").where_not(lambda g: g.where(("status", "active"))).order_by("id")
    assert _rows(db, q) == [(3,), (4,)]


def test_in_list_and_empty_in(db):
    q = table("users").select("id").where_in("id", [2, 4]).order_by("id")
    assert _rows(db, q) == [(2,), (4,)]
    assert _rows(db, table("users").where_in("id", [])) == []
    assert len(_rows(db, table("users").where_not_in("id", []))) == 4


def test_in_subquery(db):
    paid = table("orders").select("user_id").where(("status", "paid")).where(("total", GTE, 50))
    q = table("users").select("name").where_in("id", paid).order_by("name")
    assert _rows(db, q) == [("Alice",), ("Charlie",)]


def test_correlated_exists(db):
    refunded = (
        table("orders")
        .where_raw("orders.user_id = users.id")
        .where(("status", "refunded"))
    )
    assert _rows(db, table("users").select("name").where_exists(refunded)) == [("Charlie",)]
    without = table("users").select("name").where_not_exists(refunded).order_by("name")
    assert _rows(db, without) == [("Alice",), ("Bob",), ("Diana",)]


def test_join_group_having_order(db):
    q = (
        table("users")
        .select("users.name", count().label("n"), sum_("orders.total").label("spent"))
        .inner_join("orders", "users.id", "orders.user_id")
        .where(("orders.status", "paid"))
        .group_by("users.name")
        .having(("COUNT(*)", GTE, 2))
        .order_by_desc("spent")
    )
    assert _rows(db, q) == [("Alice", 2, 150.0), ("Charlie", 2, 95.0)]


def test_left_join_with_value_condition(db):
    q = (
        table("users")
        .select("users.id", count("orders.id").label("big"))
        .left_join(
            "orders",
            lambda j: j.on("users.id", "orders.user_id").on_value("orders.total", GT, 100),
        )
        .group_by("users.id")
        .order_by("users.id")
    )
    assert _rows(db, q) == [(1, 1), (2, 0), (3, 1), (4, 0)]


def test_scalar_subquery_and_distinct_count(db):
    per_user = table("orders").select(count()).where_raw("orders.user_id = users.id")
    q = (
        table("users")
        .select("name", subquery_as(per_user, "order_count"))
        .where_in("id", [1, 2])
        .order_by("id")
    )
    assert _rows(db, q) == [("Alice", 2), ("Bob", 0)]
    distinct_q = table("orders").select(count_distinct("user_id").label("buyers"))
    assert _rows(db, distinct_q) == [(2,)]


def test_limit_offset(db):
    q = table("users").select("id").order_by("id").limit(2).offset(1)
    assert _rows(db, q) == [(2,), (3,)]


def test_raw_where_fragment(db):
    q = table("users").select("id").where_raw("age BETWEEN ? AND ?", [30, 45]).order_by("id")
    assert _rows(db, q) == [(1,), (4,)]


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def test_batch_insert_and_null_blob(db):
    _exec(
        db,
        insert("users").values(
            [
                {"id": 10, "name": "Eve", "avatar": b"\x89PNG"},
                {"avatar": None, "name": "Frank", "id": 11},
            ]
        ),
    )
    rows = _rows(db, table("users").select("name", "avatar").where(("id", GTE, 10)).order_by("id"))
    assert rows == [("Eve", b"\x89PNG"), ("Frank", None)]


def test_update_with_where_and_all_rows(db):
    cur = _exec(db, update("users").set(status="vip").where(("age", GT, 40)))
    assert cur.rowcount == 2
    cur = _exec(db, update("users").set(role="member").all_rows())
    assert cur.rowcount == 4
    assert _rows(db, table("users").select(count()).where(("role", "admin"))) == [(0,)]


def test_delete_with_subquery(db):
    refunders = table("orders").select("user_id").where(("status", "refunded"))
    _exec(db, delete("orders").where_in("user_id", refunders))
    assert _rows(db, table("orders").select(count())) == [(2,)]


def test_reserved_word_identifiers(db):
    _exec(db, insert("order").values({"id": 1, "group": "a", "created_at": Value.raw("CURRENT_TIMESTAMP")}))
    rows = _rows(db, table("order").select("order.group").where(("group", "a")))
    assert rows == [("a",)]
    created = _rows(db, table("order").select("created_at"))
    assert created[0][0] is not None


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def test_transaction_commits(db):
    with transaction(db, dialect="sqlite") as tx:
        tx.execute(insert("users").values({"id": 20, "name": "Gina"}))
    assert tx.log[0] == "BEGIN"
    assert tx.log[-1] == "COMMIT"
    assert _rows(db, table("users").select("name").where(("id", 20))) == [("Gina",)]


def test_transaction_rolls_back_on_error(db):
    with pytest.raises(RuntimeError):
        with transaction(db, dialect="sqlite") as tx:
            tx.execute(insert("users").values({"id": 21, "name": "Hank"}))
            raise RuntimeError("abort")
    assert _rows(db, table("users").where(("id", 21))) == []


def test_savepoint_rollback_to(db):
    with transaction(db, dialect="sqlite") as tx:
        tx.execute(insert("users").values({"id": 30, "name": "Ivy"}))
        tx.savepoint("before_second")
        tx.execute(insert("users").values({"id": 31, "name": "Jon"}))
        tx.rollback_to_savepoint("before_second")
        tx.release_savepoint("before_second")
    ids = _rows(db, table("users").select("id").where(("id", GTE, 30)))
    assert ids == [(30,)]
