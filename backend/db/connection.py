"""SQLite connection factory for the paragraph store.

The API process, CLI commands and concurrent batch steps each open their
own connection to the same workspace file::

    from backend.db.connection import get_connection

    conn = get_connection()
    try:
        claimed = claim_pending(conn, 20)
    finally:
        conn.close()
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from backend.config import settings

# Milliseconds a writer waits on a locked database before failing.
_BUSY_TIMEOUT_MS = 5_000


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open a configured connection to the paragraph database.

    Every connection gets ``foreign_keys`` on, WAL journaling so readers
    never block the batch writer, and a busy timeout so two batch steps
    claiming work at once queue up instead of failing.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``;
            ``":memory:"`` is accepted for tests.

    Returns:
        A :class:`sqlite3.Connection` whose rows are :class:`sqlite3.Row`.
    """
    path = db_path or settings.db_path

    if str(path) != ":memory:":
        settings.ensure_workspace()

    # Shared by FastAPI's worker threads through app.state.db.
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute(f"PRAGMA busy_timeout = {_BUSY_TIMEOUT_MS}")

    return conn
