from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..services.media_entry_svc import add_entry, get_entry, list_entries, remove_entry, update_entry

router = APIRouter()


class Auth(BaseModel):
    username: str
    token: str


class EntryRef(Auth):
    id: int


class MediaFields(BaseModel):
    title: str | None = None
    type: str | None = None
    platform: str | None = None
    description: str | None = None
    image_url: str | None = None
    watched: bool | None = None


class MediaAdd(Auth):
    entry: MediaFields


class MediaUpdate(EntryRef):
    entry: MediaFields


def _call(fn, *args):
    try:
        return fn(*args)
    except PermissionError as pe:
        raise HTTPException(status_code=401, detail=str(pe))
    except LookupError as le:
        raise HTTPException(status_code=404, detail=str(le.args[0]) if le.args else "not_found")
    except ValueError as ve:
        code = 409 if str(ve) == "already_in_watchlist" else 400
        raise HTTPException(status_code=code, detail=str(ve))
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/api/media/list")
def api_media_list(body: Auth):
    items = _call(list_entries, body.username, body.token)
    return {"items": items}


@router.post("/api/media/get")
def api_media_get(body: EntryRef):
    return _call(get_entry, body.username, body.token, body.id)


@router.post("/api/media/add", status_code=201)
def api_media_add(body: MediaAdd):
    return _call(add_entry, body.username, body.token, body.entry.model_dump(exclude_none=True))


@router.post("/api/media/update")
def api_media_update(body: MediaUpdate):
    return _call(update_entry, body.username, body.token, body.id, body.entry.model_dump(exclude_none=True))


@router.post("/api/media/remove")
def api_media_remove(body: EntryRef):
    ok = _call(remove_entry, body.username, body.token, body.id)
    if not ok:
        raise HTTPException(status_code=500, detail="delete_failed")
    return {"message": "ok"}
