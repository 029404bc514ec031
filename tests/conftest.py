"""Shared pytest fixtures for chainQL unit and integration tests."""
from __future__ import annotations

import pytest

from chainql import DialectProfile, SelectQuery, table


@pytest.fixture()
def users() -> SelectQuery:
    """A bare ``SELECT * FROM users`` chain root."""
    return table("users")


@pytest.fixture(scope="session")
def pg() -> DialectProfile:
    return DialectProfile(target="postgres")


@pytest.fixture(scope="session")
def sq() -> DialectProfile:
    return DialectProfile(target="sqlite")


@pytest.fixture(scope="session")
def my() -> DialectProfile:
    return DialectProfile(target="mysql")


class RecordingSession:
    """Session double that records every ``execute`` call."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple[str, list]] = []
        self._fail_on = fail_on

    def execute(self, sql: str, params=()) -> str:
        if self._fail_on is not None and sql.startswith(self._fail_on):
            raise RuntimeError(f"driver rejected {sql!r}")
        self.calls.append((sql, list(params)))
        return sql


@pytest.fixture()
def session() -> RecordingSession:
    return RecordingSession()
