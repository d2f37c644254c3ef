"""Generic SQL command construction.

A `CommandBuilder` collects a table name, AND-joined equality / IS NULL
predicates and a column -> value mapping, and renders them into an immutable
`Command` (SELECT / INSERT / UPDATE / DELETE). Values are carried as `Scalar`
so the quoting rule lives on the kind tag instead of being guessed from the
Python type at render time.

Commands execute with bound parameters (`Command.render`). `render_inline`
reproduces the legacy interpolated text with the same shape; it performs no
escaping and exists for compatibility checks only.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any


class ScalarKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    NULL = "null"

    @property
    def quoted(self) -> bool:
        """Whether inline literals of this kind are single-quote wrapped."""
        return self in (ScalarKind.TEXT, ScalarKind.TIMESTAMP)


@dataclass(frozen=True)
class Scalar:
    kind: ScalarKind
    value: Any = None

    @classmethod
    def text(cls, value: str) -> "Scalar":
        return cls(ScalarKind.TEXT, str(value))

    @classmethod
    def integer(cls, value: int) -> "Scalar":
        return cls(ScalarKind.INTEGER, int(value))

    @classmethod
    def boolean(cls, value: bool) -> "Scalar":
        return cls(ScalarKind.BOOLEAN, 1 if value else 0)

    @classmethod
    def timestamp(cls, value: datetime) -> "Scalar":
        return cls(ScalarKind.TIMESTAMP, value)

    @classmethod
    def null(cls) -> "Scalar":
        return cls(ScalarKind.NULL, None)

    @classmethod
    def of(cls, value: Any) -> "Scalar":
        if isinstance(value, Scalar):
            return value
        if value is None:
            return cls.null()
        # bool is an int subclass, check it first
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, datetime):
            return cls.timestamp(value)
        if isinstance(value, str):
            return cls.text(value)
        raise TypeError(f"unsupported column value type: {type(value).__name__}")

    @property
    def bind_value(self) -> Any:
        if self.kind is ScalarKind.TIMESTAMP:
            return self.value.isoformat(sep=" ")
        return self.value

    def literal(self) -> str:
        if self.kind is ScalarKind.NULL:
            return "NULL"
        if self.kind.quoted:
            return f"'{self.bind_value}'"
        return str(self.value)


class PredicateMode(str, Enum):
    EQUALS = "equals"
    IS_NULL = "is_null"


@dataclass(frozen=True)
class Predicate:
    column: str
    mode: PredicateMode
    literal: Scalar | None = None

    @classmethod
    def for_value(cls, column: str, value: Any) -> "Predicate":
        if not column:
            raise ValueError("predicate column must be non-empty")
        if isinstance(value, str) and value.upper() == "NULL":
            return cls(column, PredicateMode.IS_NULL)
        return cls(column, PredicateMode.EQUALS, Scalar.of(value))

    def render(self) -> tuple[str, list[Any]]:
        if self.mode is PredicateMode.IS_NULL:
            return f"{self.column} IS NULL", []
        return f"{self.column} = ?", [self.literal.bind_value]

    def render_inline(self) -> str:
        if self.mode is PredicateMode.IS_NULL:
            return f"{self.column} IS NULL"
        return f"{self.column} = {self.literal.literal()}"


class CommandKind(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class Command:
    kind: CommandKind
    table: str
    predicates: tuple[Predicate, ...] = ()
    columns: tuple[tuple[str, Scalar], ...] = ()
    refused: str | None = None
    # SELECT only
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None

    @property
    def is_read(self) -> bool:
        return self.kind is CommandKind.SELECT

    def _where(self) -> tuple[str, list[Any]]:
        if not self.predicates:
            return "", []
        parts, params = [], []
        for p in self.predicates:
            sql, bound = p.render()
            parts.append(sql)
            params.extend(bound)
        return " WHERE " + " AND ".join(parts), params

    def _tail(self) -> str:
        tail = ""
        if self.order_by:
            tail += f" ORDER BY {self.order_by}" + (" DESC" if self.descending else "")
        if self.limit is not None:
            tail += " LIMIT ?"
        return tail

    def render(self) -> tuple[str, list[Any]]:
        """SQL text with `?` placeholders plus its parameters."""
        if self.refused:
            return "", []
        where, where_params = self._where()
        if self.kind is CommandKind.SELECT:
            limit_params = [self.limit] if self.limit is not None else []
            return f"SELECT * FROM {self.table}{where}{self._tail()}", where_params + limit_params
        if self.kind is CommandKind.DELETE:
            return f"DELETE FROM {self.table}{where}", where_params
        names = [c for c, _ in self.columns]
        values = [v.bind_value for _, v in self.columns]
        if self.kind is CommandKind.INSERT:
            placeholders = ",".join(["?"] * len(names))
            return f"INSERT INTO {self.table}({','.join(names)}) VALUES ({placeholders})", values
        assignments = ", ".join(f"{c} = ?" for c in names)
        return f"UPDATE {self.table} SET {assignments}{where}", values + where_params

    def render_inline(self) -> str:
        """Legacy text with literals interpolated. Never execute this."""
        if self.refused:
            return ""
        where = ""
        if self.predicates:
            where = " WHERE " + " AND ".join(p.render_inline() for p in self.predicates)
        if self.kind is CommandKind.SELECT:
            tail = self._tail().replace("LIMIT ?", f"LIMIT {self.limit}")
            return f"SELECT * FROM {self.table}{where}{tail}"
        if self.kind is CommandKind.DELETE:
            return f"DELETE FROM {self.table}{where}"
        if self.kind is CommandKind.INSERT:
            names = ",".join(c for c, _ in self.columns)
            values = ",".join(v.literal() for _, v in self.columns)
            return f"INSERT INTO {self.table}({names}) VALUES ({values})"
        assignments = ", ".join(f"{c} = {v.literal()}" for c, v in self.columns)
        return f"UPDATE {self.table} SET {assignments}{where}"


class CommandBuilder:
    """
    Accumulates the pieces of one statement.

    Every build method returns a `Command` and clears the pending predicates
    and column values; the table name is kept so the same builder can serve
    the next, unrelated statement on that table.
    """

    def __init__(self, table: str | None = None):
        self._table = table
        self._predicates: list[Predicate] = []
        self._columns: dict[str, Scalar] = {}

    def set_table(self, name: str) -> "CommandBuilder":
        self._table = name
        return self

    def add_predicate(self, column: str | None, value: Any) -> "CommandBuilder":
        # optional filters: a missing column or value adds nothing
        if not column or value is None:
            return self
        self._predicates.append(Predicate.for_value(column, value))
        return self

    def set_column_value(self, column: str | None, value: Any) -> "CommandBuilder":
        if not column:
            return self
        self._columns[column] = Scalar.of(value)
        return self

    def _take(self, kind: CommandKind, with_columns: bool = False) -> Command:
        if not self._table:
            raise ValueError("table name must be set before building a command")
        predicates = tuple(self._predicates)
        columns = tuple(self._columns.items()) if with_columns else ()
        self._predicates = []
        self._columns = {}

        refused = None
        if kind in (CommandKind.DELETE, CommandKind.UPDATE) and not predicates:
            refused = f"unscoped {kind.value} on {self._table}"
        elif kind in (CommandKind.INSERT, CommandKind.UPDATE) and not columns:
            refused = f"{kind.value} on {self._table} without column values"
        return Command(kind, self._table, predicates, columns, refused)

    def select(self, order_by: str | None = None, descending: bool = False, limit: int | None = None) -> Command:
        """SELECT *, optionally ordered by one column and capped at `limit` rows."""
        cmd = self._take(CommandKind.SELECT)
        if limit is not None and limit < 0:
            raise ValueError("limit must be non-negative")
        return replace(cmd, order_by=order_by or None, descending=descending, limit=limit)

    def insert(self) -> Command:
        cmd = self._take(CommandKind.INSERT, with_columns=True)
        # INSERT takes no WHERE; pending predicates are discarded
        return replace(cmd, predicates=())

    def update(self) -> Command:
        return self._take(CommandKind.UPDATE, with_columns=True)

    def delete(self) -> Command:
        return self._take(CommandKind.DELETE)
