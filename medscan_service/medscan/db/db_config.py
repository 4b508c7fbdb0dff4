# medscan/db/db_config.py

import sqlite3
from pathlib import Path

from medscan.core.app_config import MEDSCAN_DB_PATH


def get_sqlite_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """
    Create and configure SQLite connection with recommended PRAGMA settings.
    ":memory:" is accepted for tests.
    """
    path = str(db_path or MEDSCAN_DB_PATH)
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, check_same_thread=False)

    # Performance & concurrency settings
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")

    conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)")
    conn.commit()
    return conn
