"""Tests for SQLite retry classification."""

import sqlite3

import pytest

from cli.retry import is_transient_storage_error, storage_retry


@pytest.mark.parametrize(
    "exc,expected",
    [
        (sqlite3.OperationalError("database is locked"), True),
        (sqlite3.OperationalError("database table is locked: skills"), True),
        (sqlite3.OperationalError("no such table: skills"), False),
        (sqlite3.IntegrityError("database is locked"), False),
        (ValueError("busy"), False),
    ],
)
def test_is_transient(exc, expected):
    assert is_transient_storage_error(exc) is expected


def test_gives_up_after_max_attempts():
    calls = []

    @storage_retry(max_attempts=2, min_wait=0, max_wait=0)
    def locked():
        calls.append(1)
        raise sqlite3.OperationalError("database is locked")

    with pytest.raises(sqlite3.OperationalError):
        locked()
    assert len(calls) == 2


def test_structural_errors_not_retried():
    calls = []

    @storage_retry(min_wait=0, max_wait=0)
    def missing():
        calls.append(1)
        raise sqlite3.OperationalError("no such column: category")

    with pytest.raises(sqlite3.OperationalError):
        missing()
    assert len(calls) == 1
