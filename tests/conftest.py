"""
Pytest configuration and shared fixtures for namedsql tests.
"""

import sqlite3
from pathlib import Path

import pytest

from namedsql.config import reset_settings

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class RecordingBackend:
    """Backend double that records every capability call."""

    def __init__(self, fail_prepare_on=None):
        self.calls = []
        self.fail_prepare_on = fail_prepare_on
        self.prepared = []

    def _record(self, method, *call_args):
        self.calls.append((method,) + call_args)
        return f"{method}-result"

    def calls_to(self, method):
        return [call[1:] for call in self.calls if call[0] == method]

    def prepare(self, query):
        self.calls.append(("prepare", query))
        if self.fail_prepare_on is not None and len(self.calls_to("prepare")) == self.fail_prepare_on:
            raise RuntimeError("prepare failed")
        statement = FakeStatement(query)
        self.prepared.append(statement)
        return statement

    def prepare_context(self, ctx, query):
        self.calls.append(("prepare_context", ctx, query))
        statement = FakeStatement(query)
        self.prepared.append(statement)
        return statement

    def query(self, query, *args):
        return self._record("query", query, args)

    def query_context(self, ctx, query, *args):
        return self._record("query_context", ctx, query, args)

    def execute(self, query, *args):
        return self._record("execute", query, args)

    def execute_context(self, ctx, query, *args):
        return self._record("execute_context", ctx, query, args)

    def query_row(self, query, *args):
        return self._record("query_row", query, args)

    def query_row_context(self, ctx, query, *args):
        return self._record("query_row_context", ctx, query, args)


class FakeStatement:
    def __init__(self, query):
        self.query = query
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate tests from NAMEDSQL_* variables, .env files and cached settings."""
    monkeypatch.chdir(tmp_path)
    for name in ("EXTENSION", "ENCODING", "MAX_LINE_LENGTH", "RECURSIVE", "TEMPLATING", "STRICT_UNDEFINED"):
        monkeypatch.delenv(f"NAMEDSQL_{name}", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def backend():
    """Return a recording backend double."""
    return RecordingBackend()


@pytest.fixture
def schema_sql():
    """Return the users schema as tagged query text."""
    return """-- name: migrate
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
    name VARCHAR(255),
    email VARCHAR(255)
);

-- name: create-user
INSERT INTO users (name, email) VALUES(?, ?)

-- name: find-one-user-by-email
SELECT id,name,email FROM users WHERE email = ? LIMIT 1
"""


@pytest.fixture
def users_file():
    """Path of the users query file fixture."""
    return FIXTURES_DIR / "users.sql"


@pytest.fixture
def sqlite_conn():
    """In-memory SQLite connection, closed after the test."""
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()
