import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "tvtracker_test.db"
    # Point the app to this temp DB
    os.environ["TVT_DB_PATH"] = str(path)
    from tvtracker.db import reset_settings
    from tvtracker.repository.executor import reset_executor
    reset_settings()
    reset_executor()
    # Initialize schema
    schema = Path(_PROJECT_ROOT / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(schema)
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture()
def executor(tmp_db_path):
    from tvtracker.repository.executor import CommandExecutor
    return CommandExecutor(tmp_db_path)


@pytest.fixture()
def client(tmp_db_path):
    from tvtracker.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Clean tables before each test for isolation
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("TVT_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    tables = ["MediaEntry", "UserAccount", "operation_log"]
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in tables:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield
