"""Renderer-level tests: scenarios, idempotence, parameter ordering,
immutability, dialects and the compiler registry."""
from __future__ import annotations

import logging
import re

import pytest

from chainql import (
    GT,
    IN,
    CompilationError,
    CompiledSQL,
    CompilerFactory,
    DialectProfile,
    InvalidOperatorError,
    MismatchedColumnsError,
    PlaceholderStyle,
    PostgresCompiler,
    StatementKind,
    count,
    insert,
    subquery_as,
    table,
    update,
)

# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


def test_scenario_and_chain():
    sql, params = (
        table("users")
        .select(("id", "name"))
        .where(("age", GT, 18))
        .and_where(("status", "active"))
        .to_sql()
    )
    assert sql == "SELECT id, name FROM users WHERE age > $1 AND status = $2"
    assert [p.unwrap() for p in params] == [18, "active"]


def test_scenario_or_chain():
    r = table("users").where(("role", "admin")).or_where(("status", "premium")).to_sql()
    assert r.sql == "SELECT * FROM users WHERE role = $1 OR status = $2"
    assert r.bind_params() == ["admin", "premium"]


def test_scenario_batch_insert():
    rows = [{"name": "a", "email": "a@x"}, {"name": "b", "email": "b@x"}]
    r = insert("t").values(rows).to_sql()
    assert r.sql == "INSERT INTO t (name, email) VALUES ($1,$2),($3,$4)"
    assert r.bind_params() == ["a", "a@x", "b", "b@x"]
    with pytest.raises(MismatchedColumnsError):
        insert("t").values([*rows, {"name": "c"}]).to_sql()


def test_scenario_subquery_operator_error_propagates():
    inner = table("orders").select("user_id").where(("total", "BIGGER", 100))
    with pytest.raises(InvalidOperatorError) as exc_info:
        table("users").where_in("id", inner).to_sql()
    assert exc_info.value.token == "BIGGER"


# ---------------------------------------------------------------------------
# Idempotence & immutability
# ---------------------------------------------------------------------------


def _complex_query():
    orders = table("orders").select(count()).where_raw("orders.user_id = u.id")
    return (
        table("users u")
        .select("u.id", subquery_as(orders.where(("orders.total", GT, 5)), "big_orders"))
        .join("posts p", lambda j: j.on("p.user_id", "u.id").on_value("p.status", "live"))
        .where(("u.age", GT, 18))
        .or_where(
            lambda g: g.where(("u.role", "admin")).where_in(
                "u.id", table("grants").select("user_id").where(("scope", "all"))
            )
        )
        .group_by("u.id")
        .having(("COUNT(*)", GT, 2))
    )


def test_render_is_idempotent():
    q = _complex_query()
    first = q.to_sql()
    second = q.to_sql()
    assert first.sql == second.sql
    assert first.params == second.params


def test_parameter_order_follows_text_across_nesting():
    r = _complex_query().to_sql()
    assert r.sql == (
        "SELECT u.id, (SELECT COUNT(*) FROM orders WHERE orders.user_id = u.id "
        "AND orders.total > $1) AS big_orders FROM users u "
        "INNER JOIN posts p ON p.user_id = u.id AND p.status = $2 "
        "WHERE u.age > $3 OR (u.role = $4 AND u.id IN "
        "(SELECT user_id FROM grants WHERE scope = $5)) "
        "GROUP BY u.id HAVING COUNT(*) > $6"
    )
    assert r.bind_params() == [5, "live", 18, "admin", "all", 2]
    ordinals = [int(n) for n in re.findall(r"\$(\d+)", r.sql)]
    assert ordinals == list(range(1, len(r.params) + 1))


def test_positional_placeholder_count_matches_params(sq):
    r = _complex_query().to_sql(sq)
    assert "$" not in r.sql
    assert r.sql.count("?") == len(r.params) == 6


def test_shared_ancestor_is_not_mutated(users):
    base = users.select("id", "name")
    adults = base.where(("age", GT, 18))
    admins = base.where(("role", "admin"))
    assert base.to_sql().sql == "SELECT id, name FROM users"
    assert adults.to_sql().sql == "SELECT id, name FROM users WHERE age > $1"
    assert admins.to_sql().sql == "SELECT id, name FROM users WHERE role = $1"


def test_statements_are_frozen(users):
    with pytest.raises(Exception):
        users.table = "other"  # type: ignore[misc]


def test_inner_statement_reused_in_two_outers(users):
    inner = table("orders").select("user_id").where(("total", GT, 1))
    a = users.where(("x", 0)).where_in("id", inner).to_sql()
    b = users.where_in("id", inner).to_sql()
    assert a.sql.endswith("WHERE x = $1 AND id IN (SELECT user_id FROM orders WHERE total > $2)")
    assert b.sql.endswith("WHERE id IN (SELECT user_id FROM orders WHERE total > $1)")


# ---------------------------------------------------------------------------
# CompiledSQL
# ---------------------------------------------------------------------------


def test_compiled_sql_shape(users):
    r = users.where(("id", 7)).to_sql()
    assert isinstance(r, CompiledSQL)
    assert r.dialect == "postgres"
    assert r.kind is StatementKind.ROWS
    sql, params = r
    assert sql == r.sql
    assert params == r.params
    assert r.bind_params() == [7]


# ---------------------------------------------------------------------------
# Dialects
# ---------------------------------------------------------------------------


class TestDialectProfile:
    """Selection and resolution of the rendering target."""

    def test_accepts_profile_string_or_none(self, users, sq):
        q = users.where(("id", 7))
        assert q.to_sql().sql == "SELECT * FROM users WHERE id = $1"
        assert q.to_sql("sqlite").sql == "SELECT * FROM users WHERE id = ?"
        assert q.to_sql(sq).dialect == "sqlite"

    def test_placeholder_style_comes_from_registered_compiler(self, pg, sq, my):
        assert pg.placeholder_style is PlaceholderStyle.ORDINAL
        assert sq.placeholder_style is PlaceholderStyle.POSITIONAL
        assert my.placeholder_style is PlaceholderStyle.POSITIONAL

    def test_resolve(self):
        assert DialectProfile.resolve(None).target == "postgres"
        profile = DialectProfile(target="mysql")
        assert DialectProfile.resolve(profile) is profile
        assert DialectProfile.resolve("sqlite").target == "sqlite"

    def test_unknown_dialect_raises(self, users):
        with pytest.raises(CompilationError) as exc_info:
            users.to_sql("oracle")
        assert "oracle" in str(exc_info.value)
        assert exc_info.value.clause == "dialect"


class TestIdentifierQuoting:
    """Reserved-word quoting differs per dialect; everything else is verbatim."""

    def test_reserved_words_are_quoted_per_dialect(self, pg, my):
        q = table("order").select("user", "order.group", "name").where(("key", 1))
        assert q.to_sql(pg).sql == (
            'SELECT "user", "order"."group", name FROM "order" WHERE "key" = $1'
        )
        assert q.to_sql(my).sql == (
            "SELECT `user`, `order`.`group`, name FROM `order` WHERE `key` = ?"
        )

    def test_non_identifier_text_is_verbatim(self, pg):
        q = table("users u").select("u.*", "LOWER(u.email)").where(("COALESCE(u.nick, '')", ""))
        assert q.to_sql(pg).sql == (
            "SELECT u.*, LOWER(u.email) FROM users u WHERE COALESCE(u.nick, '') = $1"
        )

    def test_ilike_is_emitted_unchanged(self, users, my):
        assert users.where(("name", "ilike", "a%")).to_sql(my).sql == (
            "SELECT * FROM users WHERE name ILIKE ?"
        )


class TestCompilerFactory:
    def test_custom_dialect_can_be_registered(self, users):
        class NumberedCompiler(PostgresCompiler):
            @property
            def dialect_name(self) -> str:
                return "numbered"

            def placeholder(self, index: int) -> str:
                return f":{index}"

        CompilerFactory.register_class("numbered", NumberedCompiler)
        try:
            assert "numbered" in CompilerFactory.registered_targets()
            r = users.where(("a", 1)).where(("b", IN, [2, 3])).to_sql("numbered")
            assert r.sql == "SELECT * FROM users WHERE a = :1 AND b IN (:2, :3)"
            assert r.dialect == "numbered"
        finally:
            CompilerFactory.unregister("numbered")
        assert "numbered" not in CompilerFactory.registered_targets()

    def test_builtin_targets_are_registered(self):
        assert {"postgres", "sqlite", "mysql"} <= set(CompilerFactory.registered_targets())

    def test_target_names_are_case_insensitive(self, users):
        assert users.where(("id", 1)).to_sql("SQLite").sql == "SELECT * FROM users WHERE id = ?"

    def test_unknown_target_suggests_closest(self, users):
        with pytest.raises(CompilationError) as exc_info:
            users.to_sql("postgress")
        assert "Did you mean 'postgres'?" in str(exc_info.value)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def test_render_logs_sql_without_values(users, caplog):
    with caplog.at_level(logging.DEBUG, logger="chainql.compile.builder"):
        update("users").set(password="hunter2").where(("id", 1)).to_sql()
    messages = [rec.getMessage() for rec in caplog.records]
    assert any("UPDATE users SET password = $1 WHERE id = $2" in m for m in messages)
    assert all("hunter2" not in m for m in messages)
