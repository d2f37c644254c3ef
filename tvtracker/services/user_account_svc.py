from __future__ import annotations

# tvtracker/services/user_account_svc.py
import logging
from dataclasses import replace
from datetime import datetime

import bcrypt

from ..domain import session_token
from ..logs import LogContext
from ..repository import user_account_repo
from ..repository.executor import CommandExecutor, ConflictError, get_executor
from ..repository.user_account_repo import UserAccount

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_user_account(
    username: str,
    password: str,
    email: str | None = None,
    birth_date: datetime | None = None,
    executor: CommandExecutor | None = None,
    now: datetime | None = None,
) -> UserAccount | None:
    """
    Create the account with a fresh token.

    Raises ValueError("username_taken") when the username already exists;
    returns None for any other failure to save.
    """
    ex = executor or get_executor()
    if not username or not password:
        raise ValueError("username_and_password_required")
    account = UserAccount(username=username, password=hash_password(password), email=email, birth_date=birth_date)
    account.apply_token(session_token.issue(now))

    log = LogContext("ACCOUNT_CREATE", user=username, executor=ex)
    log.set_entity("UserAccount", username)
    log.set_payload({"username": username, "email": email})
    try:
        ok = user_account_repo.create(ex, account)
    except ConflictError:
        log.write("ERROR", "username_taken")
        raise ValueError("username_taken")
    log.write("OK" if ok else "ERROR", None if ok else "save_failed")
    return account if ok else None


def user_account_exists(username: str, executor: CommandExecutor | None = None) -> bool:
    return user_account_repo.exists_by(executor or get_executor(), username)


def fetch_user_account(username: str | None, executor: CommandExecutor | None = None) -> UserAccount | None:
    if username is None:
        return None
    return user_account_repo.fetch(executor or get_executor(), username)


def is_token_valid(account: UserAccount | None, token: str | None, now: datetime | None = None) -> bool:
    if account is None:
        return False
    return session_token.is_valid(account.session_token, token, now)


def refresh_token(
    account: UserAccount | None,
    executor: CommandExecutor | None = None,
    now: datetime | None = None,
) -> UserAccount | None:
    """Replace the account's token; None when the new token could not be stored."""
    if account is None:
        return None
    issued = session_token.issue(now)
    candidate = replace(account, token=issued.value, last_login=issued.issued_at)
    if not user_account_repo.update_token(executor or get_executor(), candidate):
        logger.warning("token refresh not persisted for %s", account.username)
        return None
    account.apply_token(issued)
    return account


def login(
    username: str,
    password: str,
    executor: CommandExecutor | None = None,
    now: datetime | None = None,
) -> UserAccount | None:
    ex = executor or get_executor()
    log = LogContext("ACCOUNT_LOGIN", user=username or "anonymous", executor=ex)
    log.set_entity("UserAccount", username)
    account = fetch_user_account(username, ex)
    if account is None or not verify_password(password, account.password):
        log.write("ERROR", "invalid_credentials")
        return None
    refreshed = refresh_token(account, ex, now)
    log.write("OK" if refreshed else "ERROR", None if refreshed else "token_not_saved")
    return refreshed


def authenticate(
    username: str | None,
    token: str | None,
    executor: CommandExecutor | None = None,
    now: datetime | None = None,
) -> UserAccount | None:
    """The account behind (username, token) if the token is currently valid."""
    account = fetch_user_account(username, executor)
    return account if is_token_valid(account, token, now) else None


def delete_user_account(username: str, token: str, executor: CommandExecutor | None = None) -> bool:
    ex = executor or get_executor()
    if authenticate(username, token, ex) is None:
        raise PermissionError("invalid_token")
    log = LogContext("ACCOUNT_DELETE", user=username, executor=ex)
    log.set_entity("UserAccount", username)
    ok = user_account_repo.delete(ex, username)
    log.write("OK" if ok else "ERROR", None if ok else "delete_failed")
    return ok
