from __future__ import annotations

from fastapi import APIRouter, Query

from ..logs import list_logs

router = APIRouter()


@router.get("/api/logs/list")
def api_logs_list(
    action: str | None = None,
    user: str | None = None,
    limit: int = Query(50, ge=1, le=500),
):
    items = list_logs(action=action, user=user, limit=limit)
    return {"total": len(items), "items": items}
