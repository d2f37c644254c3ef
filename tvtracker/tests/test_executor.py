import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone

import pytest

from tvtracker.db import ConfigError
from tvtracker.repository.command import CommandBuilder
from tvtracker.repository.executor import CommandExecutor, ConflictError


def _add_account(executor, username="alice"):
    cmd = (
        CommandBuilder("UserAccount")
        .set_column_value("username", username)
        .set_column_value("password", "x")
        .insert()
    )
    assert executor.write(cmd) is True


def _failing_connect(exc):
    @contextmanager
    def connect(_path):
        raise exc
        yield  # pragma: no cover

    return connect


def _forbidden_connect(_path):
    raise AssertionError("no connection should be opened")


def test_insert_then_select_round_trip(executor):
    _add_account(executor)
    new_id = executor.insert(
        CommandBuilder("MediaEntry")
        .set_column_value("title", "Foo")
        .set_column_value("watched", 0)
        .set_column_value("username", "alice")
        .insert()
    )
    assert new_id is not None

    rows = executor.read(CommandBuilder("MediaEntry").add_predicate("id", new_id).select())
    assert len(rows) == 1
    assert rows[0]["title"] == "Foo"
    assert not rows[0]["watched"]


def test_timestamps_round_trip(executor):
    ts = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
    executor.write(
        CommandBuilder("UserAccount")
        .set_column_value("username", "bob")
        .set_column_value("password", "x")
        .set_column_value("lastLogin", ts)
        .insert()
    )
    rows = executor.read(CommandBuilder("UserAccount").add_predicate("username", "bob").select())
    assert rows[0]["lastLogin"] == ts
    assert rows[0]["birthDate"] is None


def test_select_without_predicates_lists_every_row(executor):
    for name in ("carol", "alice", "bob"):
        _add_account(executor, name)
    rows = executor.read(CommandBuilder("UserAccount").select())
    assert {r["username"] for r in rows} == {"alice", "bob", "carol"}


def test_is_null_predicate_matches_nulls(executor):
    _add_account(executor, "alice")
    executor.write(
        CommandBuilder("UserAccount").set_column_value("token", "t").add_predicate("username", "alice").update()
    )
    _add_account(executor, "bob")
    rows = executor.read(CommandBuilder("UserAccount").add_predicate("token", "NULL").select())
    assert [r["username"] for r in rows] == ["bob"]


def test_conflict_strict_vs_lenient(executor):
    _add_account(executor, "alice")
    dup = CommandBuilder("UserAccount").set_column_value("username", "alice").set_column_value("password", "y")

    assert executor.write(dup.insert()) is False

    dup.set_column_value("username", "alice").set_column_value("password", "y")
    with pytest.raises(ConflictError) as ei:
        executor.write_strict(dup.insert())
    assert ei.value.table == "UserAccount"


def test_strict_insert_raises_conflict_on_unique_key(executor):
    _add_account(executor)
    entry = lambda: (
        CommandBuilder("MediaEntry")
        .set_column_value("title", "Foo")
        .set_column_value("username", "alice")
        .insert()
    )
    assert executor.insert(entry(), strict=True) is not None
    assert executor.insert(entry()) is None
    with pytest.raises(ConflictError):
        executor.insert(entry(), strict=True)


def test_strict_write_other_integrity_errors_fail_soft(executor):
    # foreign key violation: no such account
    cmd = CommandBuilder("MediaEntry").set_column_value("title", "Foo").set_column_value("username", "ghost").insert()
    assert executor.write_strict(cmd) is False


def test_write_reports_false_when_nothing_matched(executor):
    cmd = CommandBuilder("UserAccount").set_column_value("token", "t").add_predicate("username", "nobody").update()
    assert executor.write(cmd) is False


def test_unscoped_delete_is_refused_without_touching_backend(executor):
    _add_account(executor)
    guarded = CommandExecutor(executor.db_path, connect=_forbidden_connect)
    assert guarded.write(CommandBuilder("UserAccount").delete()) is False
    assert guarded.write_strict(CommandBuilder("UserAccount").delete()) is False
    assert len(executor.read(CommandBuilder("UserAccount").select())) == 1


def test_scoped_delete(executor):
    _add_account(executor)
    assert executor.write(CommandBuilder("UserAccount").add_predicate("username", "alice").delete()) is True
    assert executor.read(CommandBuilder("UserAccount").select()) == []


@pytest.mark.parametrize("exc", [
    sqlite3.OperationalError("unable to open database file"),
    ConfigError("bad config"),
    OSError("network unreachable"),
])
def test_connection_failures_fail_soft(exc):
    ex = CommandExecutor("unused.db", connect=_failing_connect(exc))
    assert ex.read(CommandBuilder("UserAccount").select()) == []
    insert = lambda: CommandBuilder("UserAccount").set_column_value("username", "a").insert()
    assert ex.write(insert()) is False
    # not a conflict: still a plain False on the strict path
    assert ex.write_strict(insert()) is False
    assert ex.insert(insert(), strict=True) is None


def test_backend_error_on_read_returns_empty(executor):
    assert executor.read(CommandBuilder("NoSuchTable").select()) == []


def test_select_through_write_is_a_programming_error(executor):
    with pytest.raises(ValueError):
        executor.write(CommandBuilder("UserAccount").select())


def test_undecodable_timestamp_reads_as_empty(executor, tmp_db_path):
    conn = sqlite3.connect(tmp_db_path)
    try:
        conn.execute(
            "INSERT INTO UserAccount(username, password, lastLogin) VALUES (?, ?, ?)",
            ("bob", "x", "01/02/2024"),
        )
        conn.commit()
    finally:
        conn.close()
    assert executor.read(CommandBuilder("UserAccount").add_predicate("username", "bob").select()) == []


def test_select_order_and_limit(executor):
    for name in ("a", "c", "b"):
        _add_account(executor, name)
    cmd = CommandBuilder("UserAccount").select(order_by="username", descending=True, limit=2)
    assert [r["username"] for r in executor.read(cmd)] == ["c", "b"]
