"""Request-scoped access to the shared SQLite connection.

``app.state.db`` is one connection, and sqlite3 keeps one transaction per
connection: a ``with conn:`` exiting on one worker thread commits whatever
another thread has written so far.  Handlers therefore take the connection
through :func:`locked_db`, which holds ``app.state.db_lock`` for the whole
request.  Long-running work (``/scrape/run``) opens its own connection.
"""

from __future__ import annotations

import sqlite3
from typing import Iterator

from fastapi import Request


def locked_db(request: Request) -> Iterator[sqlite3.Connection]:
    """Yield ``app.state.db`` while holding the app's connection lock."""
    # A plain Lock: FastAPI may enter and exit this on different worker threads.
    with request.app.state.db_lock:
        yield request.app.state.db
