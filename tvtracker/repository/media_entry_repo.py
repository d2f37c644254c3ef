from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .command import CommandBuilder
from .executor import CommandExecutor

TABLE = "MediaEntry"


@dataclass
class MediaEntry:
    title: str
    username: str
    type: str | None = None
    platform: str | None = None
    description: str | None = None
    image_url: str | None = None
    watched: bool = False
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "platform": self.platform,
            "description": self.description,
            "image_url": self.image_url,
            "watched": self.watched,
            "username": self.username,
        }


def _builder() -> CommandBuilder:
    return CommandBuilder(TABLE)


def _with_columns(entry: MediaEntry) -> CommandBuilder:
    return (
        _builder()
        .set_column_value("title", entry.title)
        .set_column_value("type", entry.type)
        .set_column_value("platform", entry.platform)
        .set_column_value("description", entry.description)
        .set_column_value("imageUrl", entry.image_url)
        .set_column_value("watched", 1 if entry.watched else 0)
        .set_column_value("username", entry.username)
    )


def _parse(records: list[dict[str, Any]]) -> list[MediaEntry]:
    return [
        MediaEntry(
            id=r.get("id"),
            title=r.get("title"),
            type=r.get("type"),
            platform=r.get("platform"),
            description=r.get("description"),
            image_url=r.get("imageUrl"),
            watched=bool(r.get("watched")),
            username=r.get("username"),
        )
        for r in records
    ]


def save(executor: CommandExecutor, entry: MediaEntry, strict: bool = False) -> int | None:
    """Insert the entry and return its new id (None when nothing was written)."""
    new_id = executor.insert(_with_columns(entry).insert(), strict=strict)
    if new_id is not None:
        entry.id = new_id
    return new_id


def fetch(executor: CommandExecutor, entry_id: int) -> MediaEntry | None:
    entries = _parse(executor.read(_builder().add_predicate("id", entry_id).select()))
    return entries[0] if entries else None


def fetch_by_username(executor: CommandExecutor, username: str) -> list[MediaEntry]:
    return _parse(executor.read(_builder().add_predicate("username", username).select()))


def update(executor: CommandExecutor, entry: MediaEntry, strict: bool = False) -> bool:
    """With `strict`, a rename onto an existing title raises ConflictError."""
    cmd = _with_columns(entry).add_predicate("id", entry.id).update()
    return executor.write_strict(cmd) if strict else executor.write(cmd)


def set_watched(executor: CommandExecutor, entry_id: int, watched: bool) -> bool:
    cmd = _builder().set_column_value("watched", 1 if watched else 0).add_predicate("id", entry_id).update()
    return executor.write(cmd)


def delete(executor: CommandExecutor, entry_id: int | None) -> bool:
    return executor.write(_builder().add_predicate("id", entry_id).delete())
