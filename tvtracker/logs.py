import json, time, uuid, datetime as dt
import logging
from typing import Optional, List, Dict, Any

from .repository.command import CommandBuilder
from .repository.executor import CommandExecutor, get_executor

logger = logging.getLogger(__name__)

TABLE = "operation_log"

# never persist raw credentials
_SENSITIVE_KEYS = {"password", "token", "access_token", "refresh_token"}


def _mask_sensitive(obj):
    if isinstance(obj, dict):
        return {k: ("***" if str(k).lower() in _SENSITIVE_KEYS else _mask_sensitive(v)) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_mask_sensitive(v) for v in obj]
    return obj


def _dumps(obj) -> Optional[str]:
    if obj is None:
        return None
    return json.dumps(_mask_sensitive(obj), ensure_ascii=False, default=str)


class LogContext:
    def __init__(self, action: str, user: str = "anonymous", executor: CommandExecutor | None = None):
        self.action = action
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.after = None
        self.payload = None
        self.entity_type = None
        self.entity_id = None
        self._executor = executor

    def set_entity(self, etype: str, eid: str):
        self.entity_type = etype
        self.entity_id = None if eid is None else str(eid)

    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def write(self, result: str = "OK", err: Optional[str] = None) -> bool:
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        q = CommandBuilder(TABLE)
        q.set_column_value("ts", dt.datetime.now(dt.timezone.utc))
        q.set_column_value("user", self.user)
        q.set_column_value("action", self.action)
        q.set_column_value("entity_type", self.entity_type)
        q.set_column_value("entity_id", self.entity_id)
        q.set_column_value("request_id", self.request_id)
        q.set_column_value("payload_json", _dumps(self.payload))
        q.set_column_value("after_json", _dumps(self.after))
        q.set_column_value("result", result)
        q.set_column_value("err_msg", err)
        q.set_column_value("latency_ms", elapsed_ms)
        ok = (self._executor or get_executor()).write(q.insert())
        if not ok:
            logger.warning("operation log not written: %s %s", self.action, result)
        return ok


def list_logs(action: str | None = None, user: str | None = None, limit: int = 50,
              executor: CommandExecutor | None = None) -> List[Dict[str, Any]]:
    """Most recent entries first; action/user are optional equality filters."""
    q = CommandBuilder(TABLE).add_predicate("action", action).add_predicate("user", user)
    return (executor or get_executor()).read(q.select(order_by="id", descending=True, limit=max(limit, 0)))
