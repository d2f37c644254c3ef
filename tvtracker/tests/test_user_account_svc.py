from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tvtracker.logs import list_logs
from tvtracker.repository import user_account_repo
from tvtracker.services import user_account_svc as svc

T0 = datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)


def test_create_issues_token_and_hashes_password(executor):
    acc = svc.create_user_account("alice", "s3cret", "a@example.com", executor=executor, now=T0)
    assert acc is not None
    assert acc.token and acc.last_login == T0

    stored = user_account_repo.fetch(executor, "alice")
    assert stored.password != "s3cret"
    assert svc.verify_password("s3cret", stored.password)
    assert stored.token == acc.token
    assert stored.last_login == T0
    assert svc.user_account_exists("alice", executor)


def test_create_duplicate_username_raises(executor):
    svc.create_user_account("alice", "pw", executor=executor)
    with pytest.raises(ValueError, match="username_taken"):
        svc.create_user_account("alice", "other", executor=executor)


def test_create_requires_credentials(executor):
    with pytest.raises(ValueError):
        svc.create_user_account("", "pw", executor=executor)


def test_fetch_none_username():
    assert svc.fetch_user_account(None) is None


def test_login_replaces_token(executor):
    created = svc.create_user_account("alice", "pw", executor=executor, now=T0)
    first = created.token

    assert svc.login("alice", "wrong", executor=executor) is None
    assert svc.login("nobody", "pw", executor=executor) is None

    later = T0 + timedelta(minutes=5)
    acc = svc.login("alice", "pw", executor=executor, now=later)
    assert acc is not None and acc.token != first

    stored = user_account_repo.fetch(executor, "alice")
    check_at = T0 + timedelta(minutes=6)
    assert not svc.is_token_valid(stored, first, check_at)
    assert svc.is_token_valid(stored, acc.token, check_at)


def test_token_expires_after_an_hour(executor):
    acc = svc.create_user_account("alice", "pw", executor=executor, now=T0)
    stored = user_account_repo.fetch(executor, "alice")
    assert svc.is_token_valid(stored, acc.token, T0 + timedelta(minutes=59))
    assert not svc.is_token_valid(stored, acc.token, T0 + timedelta(minutes=61))
    assert not svc.is_token_valid(None, acc.token, T0)


def test_refresh_returns_none_when_save_fails(executor):
    acc = svc.create_user_account("alice", "pw", executor=executor, now=T0)
    old = acc.token
    user_account_repo.delete(executor, "alice")
    assert svc.refresh_token(acc, executor=executor) is None
    # the abandoned token never replaces the one held in memory
    assert acc.token == old
    assert svc.refresh_token(None, executor=executor) is None


def test_authenticate(executor):
    acc = svc.create_user_account("alice", "pw", executor=executor)
    assert svc.authenticate("alice", acc.token, executor=executor).username == "alice"
    assert svc.authenticate("alice", "nope", executor=executor) is None
    assert svc.authenticate(None, acc.token, executor=executor) is None


def test_delete_requires_valid_token(executor):
    acc = svc.create_user_account("alice", "pw", executor=executor)
    with pytest.raises(PermissionError):
        svc.delete_user_account("alice", "bad", executor=executor)
    assert svc.delete_user_account("alice", acc.token, executor=executor) is True
    assert not svc.user_account_exists("alice", executor)


def test_operations_are_logged_without_secrets(executor):
    svc.create_user_account("alice", "pw", executor=executor)
    svc.login("alice", "wrong", executor=executor)
    logs = list_logs(user="alice", executor=executor)
    assert [r["action"] for r in logs] == ["ACCOUNT_LOGIN", "ACCOUNT_CREATE"]
    assert logs[0]["err_msg"] == "invalid_credentials"
    assert "pw" not in (logs[1]["payload_json"] or "")
