from __future__ import annotations

from typing import Any

from ..logs import LogContext
from ..repository import media_entry_repo
from ..repository.executor import CommandExecutor, ConflictError, get_executor
from ..repository.media_entry_repo import MediaEntry
from .user_account_svc import authenticate


def _require_user(username: str, token: str, ex: CommandExecutor) -> None:
    if authenticate(username, token, ex) is None:
        raise PermissionError("invalid_token")


def _owned_entry(ex: CommandExecutor, username: str, entry_id: int) -> MediaEntry:
    entry = media_entry_repo.fetch(ex, entry_id)
    # entries of other users are reported as missing
    if entry is None or entry.username != username:
        raise LookupError("entry_not_found")
    return entry


def list_entries(username: str, token: str, executor: CommandExecutor | None = None) -> list[dict[str, Any]]:
    ex = executor or get_executor()
    _require_user(username, token, ex)
    return [e.to_dict() for e in media_entry_repo.fetch_by_username(ex, username)]


def get_entry(username: str, token: str, entry_id: int, executor: CommandExecutor | None = None) -> dict[str, Any]:
    ex = executor or get_executor()
    _require_user(username, token, ex)
    return _owned_entry(ex, username, entry_id).to_dict()


def add_entry(username: str, token: str, fields: dict[str, Any], executor: CommandExecutor | None = None) -> dict[str, Any]:
    ex = executor or get_executor()
    _require_user(username, token, ex)
    if not fields.get("title"):
        raise ValueError("title_required")
    entry = MediaEntry(
        title=fields["title"],
        username=username,
        type=fields.get("type"),
        platform=fields.get("platform"),
        description=fields.get("description"),
        image_url=fields.get("image_url"),
        watched=bool(fields.get("watched", False)),
    )
    log = LogContext("MEDIA_ADD", user=username, executor=ex)
    log.set_payload(fields)
    try:
        new_id = media_entry_repo.save(ex, entry, strict=True)
    except ConflictError:
        log.write("ERROR", "already_in_watchlist")
        raise ValueError("already_in_watchlist")
    if new_id is None:
        log.write("ERROR", "save_failed")
        raise RuntimeError("save_failed")
    log.set_entity("MediaEntry", new_id)
    log.set_after(entry.to_dict())
    log.write("OK")
    return entry.to_dict()


def update_entry(
    username: str,
    token: str,
    entry_id: int,
    fields: dict[str, Any],
    executor: CommandExecutor | None = None,
) -> dict[str, Any]:
    ex = executor or get_executor()
    _require_user(username, token, ex)
    entry = _owned_entry(ex, username, entry_id)
    for k in ("title", "type", "platform", "description", "image_url"):
        if fields.get(k) is not None:
            setattr(entry, k, fields[k])
    if fields.get("watched") is not None:
        entry.watched = bool(fields["watched"])

    log = LogContext("MEDIA_UPDATE", user=username, executor=ex)
    log.set_entity("MediaEntry", entry_id)
    log.set_payload(fields)
    try:
        updated = media_entry_repo.update(ex, entry, strict=True)
    except ConflictError:
        log.write("ERROR", "already_in_watchlist")
        raise ValueError("already_in_watchlist")
    if not updated:
        log.write("ERROR", "update_failed")
        raise RuntimeError("update_failed")
    log.set_after(entry.to_dict())
    log.write("OK")
    return entry.to_dict()


def set_watched(username: str, token: str, entry_id: int, watched: bool, executor: CommandExecutor | None = None) -> bool:
    ex = executor or get_executor()
    _require_user(username, token, ex)
    _owned_entry(ex, username, entry_id)
    return media_entry_repo.set_watched(ex, entry_id, watched)


def remove_entry(username: str, token: str, entry_id: int, executor: CommandExecutor | None = None) -> bool:
    ex = executor or get_executor()
    _require_user(username, token, ex)
    _owned_entry(ex, username, entry_id)
    log = LogContext("MEDIA_REMOVE", user=username, executor=ex)
    log.set_entity("MediaEntry", entry_id)
    ok = media_entry_repo.delete(ex, entry_id)
    log.write("OK" if ok else "ERROR", None if ok else "delete_failed")
    return ok
