from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..domain.session_token import SessionToken
from .command import CommandBuilder
from .executor import CommandExecutor

TABLE = "UserAccount"


@dataclass
class UserAccount:
    username: str
    password: str | None = None
    email: str | None = None
    birth_date: datetime | None = None
    # random string used for authentication
    token: str | None = None
    # time of the last successful login; the token is valid for an hour after it
    last_login: datetime | None = None

    @property
    def session_token(self) -> SessionToken | None:
        if self.token is None and self.last_login is None:
            return None
        return SessionToken(self.token, self.last_login)

    def apply_token(self, token: SessionToken) -> None:
        self.token = token.value
        self.last_login = token.issued_at

    def public_dict(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "email": self.email,
            "birth_date": self.birth_date.isoformat() if self.birth_date else None,
            "last_login": self.last_login.isoformat() if self.last_login else None,
        }


def _builder() -> CommandBuilder:
    return CommandBuilder(TABLE)


def _with_columns(account: UserAccount) -> CommandBuilder:
    return (
        _builder()
        .set_column_value("username", account.username)
        .set_column_value("password", account.password)
        .set_column_value("email", account.email)
        .set_column_value("birthDate", account.birth_date)
        .set_column_value("token", account.token)
        .set_column_value("lastLogin", account.last_login)
    )


def _parse(records: list[dict[str, Any]]) -> list[UserAccount]:
    return [
        UserAccount(
            username=r.get("username"),
            password=r.get("password"),
            email=r.get("email"),
            birth_date=r.get("birthDate"),
            token=r.get("token"),
            last_login=r.get("lastLogin"),
        )
        for r in records
    ]


def save(executor: CommandExecutor, account: UserAccount) -> bool:
    return executor.write(_with_columns(account).insert())


def create(executor: CommandExecutor, account: UserAccount) -> bool:
    """Insert a new account; raises ConflictError when the username is taken."""
    return executor.write_strict(_with_columns(account).insert())


def fetch(executor: CommandExecutor, username: str | None) -> UserAccount | None:
    if username is None:
        return None
    accounts = _parse(executor.read(_builder().add_predicate("username", username).select()))
    return accounts[0] if accounts else None


def exists_by(executor: CommandExecutor, username: str) -> bool:
    return bool(executor.read(_builder().add_predicate("username", username).select()))


def delete(executor: CommandExecutor, username: str | None) -> bool:
    return executor.write(_builder().add_predicate("username", username).delete())


def update_token(executor: CommandExecutor, account: UserAccount) -> bool:
    cmd = (
        _builder()
        .set_column_value("token", account.token)
        .set_column_value("lastLogin", account.last_login)
        .add_predicate("username", account.username)
        .update()
    )
    return executor.write(cmd)
