from __future__ import annotations

# tvtracker/db.py
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator
import os
import yaml

# DB path resolution order:
# 1) env TVT_DB_PATH (highest priority)
# 2) config.yaml test_db_path (when a test environment is detected)
# 3) config.yaml db_path (production default)
# 4) fallback: <project root>/tvtracker.db
_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "tvtracker.db")
_DEFAULT_TIMEOUT = 5.0


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed."""


@dataclass(frozen=True)
class DbSettings:
    db_path: str
    connect_timeout: float = _DEFAULT_TIMEOUT


def _config_path() -> str:
    return os.environ.get("TVT_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")


def _read_config_yaml() -> dict:
    cfg_path = _config_path()
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read {cfg_path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"{cfg_path} must contain a mapping")
    out = {}
    for k in ("db_path", "test_db_path"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    if cfg.get("connect_timeout") is not None:
        try:
            out["connect_timeout"] = float(cfg["connect_timeout"])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid connect_timeout: {cfg['connect_timeout']!r}") from e
    return out


def _is_test_env() -> bool:
    return (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)


@lru_cache(maxsize=None)
def get_settings() -> DbSettings:
    """Resolve the connection settings once per process."""
    env_path = os.environ.get("TVT_DB_PATH")
    cfg = _read_config_yaml()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")

    if env_path:
        path = env_path
    elif _is_test_env() and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _ROOT_DB

    return DbSettings(db_path=path, connect_timeout=cfg.get("connect_timeout", _DEFAULT_TIMEOUT))


def reset_settings() -> None:
    get_settings.cache_clear()


def get_db_path(_: str | None = None) -> str:
    path = get_settings().db_path
    # make sure the directory exists
    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open one SQLite connection for the duration of a single statement.
    An explicit db_path wins over get_db_path(). Autocommit, foreign keys on,
    row_factory set to Row. The connection is closed on every exit path.
    """
    path = db_path or get_db_path()
    conn = sqlite3.connect(
        path,
        timeout=get_settings().connect_timeout,
        check_same_thread=False,
        isolation_level=None,
    )
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


def describe_columns(conn: sqlite3.Connection, table: str) -> dict[str, str]:
    """Declared column types of `table`, keyed by column name."""
    rows = conn.execute(f'PRAGMA table_info("{table}")').fetchall()
    return {r["name"]: (r["type"] or "").upper() for r in rows}


def ensure_schema(db_path: str | None = None) -> None:
    schema_path = os.path.join(_PROJECT_ROOT, "schema.sql")
    with open(schema_path, "r", encoding="utf-8") as f:
        ddl = f.read()
    with get_conn(db_path) as conn:
        conn.executescript(ddl)
