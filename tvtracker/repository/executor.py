"""Runs built commands against a per-call connection.

Reads and writes are fail-soft: backend trouble of any kind (driver errors,
unreadable config, unreachable database) is logged and reported as an empty
result or `False`. The only error that crosses this boundary is
`ConflictError`, raised by `write_strict` for duplicate keys so that create
flows can tell "already exists" apart from a generic failure.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, ContextManager

from ..db import ConfigError, describe_columns, get_conn
from .command import Command
from .result_mapper import map_rows

logger = logging.getLogger(__name__)

_BACKEND_ERRORS = (sqlite3.Error, ConfigError, OSError)
# stored temporal values the mapper cannot decode
_DECODE_ERRORS = (ValueError, OverflowError)
_DUPLICATE_MARKERS = ("unique constraint", "primary key", "duplicate")


class RepositoryError(Exception):
    """Base class for errors raised by the record-access layer."""


class ConflictError(RepositoryError):
    """A uniqueness / primary-key violation reported by the backend."""

    def __init__(self, table: str, detail: str | None = None):
        super().__init__("Duplicate Primary Key.")
        self.table = table
        self.detail = detail


def is_duplicate_key(exc: sqlite3.IntegrityError) -> bool:
    msg = str(exc).lower()
    return any(m in msg for m in _DUPLICATE_MARKERS)


class CommandExecutor:
    def __init__(
        self,
        db_path: str | None = None,
        connect: Callable[[str | None], ContextManager[sqlite3.Connection]] = get_conn,
    ):
        self.db_path = db_path
        self._connect = connect

    def read(self, command: Command) -> list[dict[str, Any]]:
        if not command.is_read or command.refused:
            logger.warning("read skipped: %s", command.refused or f"{command.kind.value} is not a read")
            return []
        sql, params = command.render()
        logger.debug("read %s", sql)
        try:
            with self._connect(self.db_path) as conn:
                cur = conn.execute(sql, params)
                names = [d[0] for d in cur.description or ()]
                rows = cur.fetchall()
                types = describe_columns(conn, command.table)
            return map_rows(rows, names, types)
        except _BACKEND_ERRORS:
            logger.exception("read failed on %s", command.table)
            return []
        except _DECODE_ERRORS:
            logger.exception("undecodable row in %s", command.table)
            return []

    def write(self, command: Command) -> bool:
        try:
            return self._write(command)
        except sqlite3.IntegrityError as e:
            logger.warning("write rejected on %s: %s", command.table, e)
            return False

    def write_strict(self, command: Command) -> bool:
        """Like `write`, but a duplicate key raises `ConflictError`."""
        try:
            return self._write(command)
        except sqlite3.IntegrityError as e:
            if is_duplicate_key(e):
                logger.info("duplicate key on %s", command.table)
                raise ConflictError(command.table, str(e)) from e
            logger.warning("write rejected on %s: %s", command.table, e)
            return False

    def insert(self, command: Command, strict: bool = False) -> int | None:
        """Run an INSERT and return the new rowid, or None when nothing was written."""
        try:
            cur = self._execute_write(command)
        except sqlite3.IntegrityError as e:
            if strict and is_duplicate_key(e):
                logger.info("duplicate key on %s", command.table)
                raise ConflictError(command.table, str(e)) from e
            logger.warning("insert rejected on %s: %s", command.table, e)
            return None
        if cur is None or cur[0] <= 0:
            return None
        return cur[1]

    def _write(self, command: Command) -> bool:
        cur = self._execute_write(command)
        return cur is not None and cur[0] > 0

    def _execute_write(self, command: Command) -> tuple[int, int | None] | None:
        """(rowcount, lastrowid) of a write, None for refused or failed commands."""
        if command.is_read:
            raise ValueError("SELECT commands go through read()")
        if command.refused:
            logger.warning("refused command: %s", command.refused)
            return None
        sql, params = command.render()
        logger.debug("write %s", sql)
        try:
            with self._connect(self.db_path) as conn:
                cur = conn.execute(sql, params)
                return cur.rowcount, cur.lastrowid
        except sqlite3.IntegrityError:
            raise
        except _BACKEND_ERRORS:
            logger.exception("write failed on %s", command.table)
            return None


_default: CommandExecutor | None = None


def get_executor() -> CommandExecutor:
    global _default
    if _default is None:
        _default = CommandExecutor()
    return _default


def reset_executor() -> None:
    global _default
    _default = None
