"""
Tests for the tag parser and the query file scanner.
"""

import io

import pytest

from namedsql.exceptions import LineTooLongError, LoadError
from namedsql.scanner import INITIAL_STATE, Append, Phase, ScanState, get_tag, iter_lines, scan, step


class TestGetTag:
    """Tests for tag line recognition."""

    @pytest.mark.parametrize("line, expected", [
        ("-- name: find-users-by-name", "find-users-by-name"),
        ("  --  name:  save-user ", "save-user"),
        ("--name: compact", "compact"),
        ("-- name:no-space", "no-space"),
        ("\t-- name:\tweird.name$1", "weird.name$1"),
        ("-- name: first second", "first"),
    ])
    def test_extracts_identifier(self, line, expected):
        assert get_tag(line) == expected

    def test_only_ascii_whitespace_separates(self):
        assert get_tag("-- name:\xa0foo") == "\xa0foo"
        assert get_tag("\u3000-- name: foo") is None
        assert get_tag("--\u2003name: foo") is None

    @pytest.mark.parametrize("line", [
        "SELECT 1+1",
        "-- Some Comment",
        "-- name:  ",
        "-- name:",
        "-- NAME: upper",
        "SELECT 1 -- name: trailing",
        "- name: single-dash",
        "",
    ])
    def test_non_tags(self, line):
        assert get_tag(line) is None


class TestStep:
    """Tests for the pure transition function."""

    def test_seeking_discards_plain_lines(self):
        state, action = step(INITIAL_STATE, "SELECT 1")
        assert state == INITIAL_STATE
        assert action is None

    def test_tag_starts_collecting(self):
        state, action = step(INITIAL_STATE, "-- name: q")
        assert state == ScanState(Phase.COLLECTING, "q")
        assert action == Append("q", "")

    def test_collecting_appends_line_with_newline(self):
        state = ScanState(Phase.COLLECTING, "q")
        new_state, action = step(state, "SELECT 1")
        assert new_state is state
        assert action == Append("q", "SELECT 1\n")

    def test_collecting_switches_current_on_tag(self):
        state, action = step(ScanState(Phase.COLLECTING, "a"), "-- name: b")
        assert state == ScanState(Phase.COLLECTING, "b")
        assert action == Append("b", "")


class TestScan:
    """Tests for the scanner driver."""

    def test_no_tags_yields_empty_mapping(self):
        assert scan(["SELECT 1", "SELECT 2"]) == {}

    def test_two_queries(self):
        lines = "-- name: a\nQ1\n-- name: b\nQ2\n".splitlines()
        assert scan(lines) == {"a": "Q1\n", "b": "Q2\n"}

    def test_repeated_tag_keeps_accumulating(self):
        lines = "-- name: a\n-- name: a\nQ1\n".splitlines()
        assert scan(lines) == {"a": "Q1\n"}

    def test_retagging_appends_to_existing_body(self):
        lines = ["-- name: a", "Q1", "-- name: b", "Q2", "-- name: a", "Q3"]
        assert scan(lines) == {"a": "Q1\nQ3\n", "b": "Q2\n"}

    def test_tag_without_body_is_present_but_empty(self):
        lines = ["-- name: empty", "-- name: full", "SELECT 1"]
        queries = scan(lines)
        assert queries == {"empty": "", "full": "SELECT 1\n"}

    def test_lines_before_first_tag_are_dropped(self):
        lines = ["-- header comment", "SELECT 0", "-- name: a", "SELECT 1"]
        assert scan(lines) == {"a": "SELECT 1\n"}

    def test_body_keeps_comments_and_blank_lines(self):
        lines = ["-- name: all-users", "-- Finds all users", "SELECT * from USER", ""]
        assert scan(lines) == {"all-users": "-- Finds all users\nSELECT * from USER\n\n"}

    def test_consumes_generators(self):
        lines = (line for line in ["-- name: a", "x"])
        assert scan(lines) == {"a": "x\n"}


class TestIterLines:
    """Tests for the bounded line reader."""

    def test_strips_terminators(self):
        stream = io.StringIO("a\r\nb\nc")
        assert list(iter_lines(stream)) == ["a", "b", "c"]

    def test_keeps_empty_lines(self):
        stream = io.StringIO("a\n\nb\n")
        assert list(iter_lines(stream)) == ["a", "", "b"]

    def test_line_at_limit_is_accepted(self):
        stream = io.StringIO("x" * 10 + "\r\n" + "y" * 10)
        assert list(iter_lines(stream, max_line_length=10)) == ["x" * 10, "y" * 10]

    def test_line_over_limit_raises(self):
        stream = io.StringIO("ok\n" + "x" * 11 + "\nmore\n")
        with pytest.raises(LineTooLongError) as excinfo:
            list(iter_lines(stream, max_line_length=10, path="big.sql"))
        assert excinfo.value.line_number == 2
        assert excinfo.value.limit == 10
        assert excinfo.value.path == "big.sql"
        assert isinstance(excinfo.value, LoadError)

    def test_unbounded_when_limit_disabled(self):
        long_line = "x" * 100_000
        assert list(iter_lines(io.StringIO(long_line), max_line_length=0)) == [long_line]
        assert list(iter_lines(io.StringIO(long_line), max_line_length=None)) == [long_line]

    def test_reads_lazily(self):
        stream = io.StringIO("-- name: a\nSELECT 1\n")
        lines = iter_lines(stream)
        assert next(lines) == "-- name: a"
        assert stream.tell() == len("-- name: a\n")
