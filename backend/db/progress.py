"""CRUD operations for the ``scrape_progress`` table.

One row per distinct article URL.  The table is the sole record of what is
left to fetch, so every batch step reads its work from here and nothing
about a run is kept in memory.
"""

from __future__ import annotations

import sqlite3
from time import time
from typing import Optional

from backend.db.models import PENDING, PROCESSING, STATUSES, ScrapeProgress
from backend.scraper.models import ArticleDescriptor


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_progress(row: sqlite3.Row) -> ScrapeProgress:
    return ScrapeProgress(
        url=row["url"],
        status=row["status"],
        last_processed_at=row["last_processed_at"],
        error_message=row["error_message"],
        book_title=row["book_title"],
        sequence_title=row["sequence_title"],
        book_order=row["book_order"],
        sequence_order=row["sequence_order"],
        article_order=row["article_order"],
    )


def _now() -> int:
    return int(time() * 1000)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_progress(conn: sqlite3.Connection, url: str) -> Optional[ScrapeProgress]:
    """Fetch the progress record for *url*.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM scrape_progress WHERE url = ?", (url,)
    ).fetchone()
    return _row_to_progress(row) if row else None


def upsert_progress(
    conn: sqlite3.Connection,
    url: str,
    status: str,
    error_message: Optional[str] = None,
) -> ScrapeProgress:
    """Set the status of *url*, creating the record if needed.

    ``last_processed_at`` is refreshed and ``error_message`` overwritten on
    every call, so a later success clears an earlier failure message.

    Raises:
        ValueError: If *status* is not a known status.
    """
    if status not in STATUSES:
        raise ValueError(f"Unknown scrape status {status!r}")

    with conn:
        conn.execute(
            """
            INSERT INTO scrape_progress (url, status, last_processed_at, error_message)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(url) DO UPDATE SET
                status            = excluded.status,
                last_processed_at = excluded.last_processed_at,
                error_message     = excluded.error_message
            """,
            (url, status, _now(), error_message),
        )

    return get_progress(conn, url)  # type: ignore[return-value]


def queue_descriptor(conn: sqlite3.Connection, descriptor: ArticleDescriptor) -> bool:
    """Queue *descriptor* for scraping.

    A URL that already completed is left untouched.  Any other existing
    record is reset to ``pending`` with refreshed order metadata, and a new
    URL gets a fresh ``pending`` record.

    Returns:
        ``True`` if the URL is now pending, ``False`` if it was already completed.
    """
    with conn:
        cursor = conn.execute(
            """
            INSERT INTO scrape_progress (
                url, status, last_processed_at, error_message,
                book_title, sequence_title, book_order, sequence_order, article_order
            )
            VALUES (?, 'pending', ?, NULL, ?, ?, ?, ?, ?)
            ON CONFLICT(url) DO UPDATE SET
                status            = 'pending',
                last_processed_at = excluded.last_processed_at,
                error_message     = NULL,
                book_title        = excluded.book_title,
                sequence_title    = excluded.sequence_title,
                book_order        = excluded.book_order,
                sequence_order    = excluded.sequence_order,
                article_order     = excluded.article_order
            WHERE scrape_progress.status != 'completed'
            """,
            (
                descriptor.url,
                _now(),
                descriptor.book_title,
                descriptor.sequence_title,
                descriptor.book_order,
                descriptor.sequence_order,
                descriptor.article_order,
            ),
        )
    return cursor.rowcount > 0


def claim_pending(conn: sqlite3.Connection, limit: int) -> list[ScrapeProgress]:
    """Atomically mark up to *limit* pending records as ``processing``.

    Selection and status change happen in one ``UPDATE … RETURNING``
    statement inside a single transaction, so two concurrent batch steps
    never claim the same URL.

    Returns:
        The claimed records, ordered by ``article_order``.
    """
    if limit <= 0:
        return []

    with conn:
        rows = conn.execute(
            """
            UPDATE scrape_progress
            SET    status = ?, last_processed_at = ?
            WHERE  url IN (
                SELECT url FROM scrape_progress
                WHERE  status = ?
                ORDER  BY article_order, url
                LIMIT  ?
            )
            RETURNING *
            """,
            (PROCESSING, _now(), PENDING, limit),
        ).fetchall()

    claimed = [_row_to_progress(r) for r in rows]
    claimed.sort(key=lambda p: (p.article_order is None, p.article_order or 0, p.url))
    return claimed


def release_stale_claims(conn: sqlite3.Connection) -> int:
    """Return records stuck in ``processing`` (an interrupted step) to ``pending``."""
    with conn:
        cursor = conn.execute(
            "UPDATE scrape_progress SET status = ? WHERE status = ?",
            (PENDING, PROCESSING),
        )
    return cursor.rowcount


def count_pending(conn: sqlite3.Connection) -> int:
    """Return the number of URLs still waiting to be scraped."""
    row = conn.execute(
        "SELECT COUNT(*) FROM scrape_progress WHERE status = ?", (PENDING,)
    ).fetchone()
    return row[0]


def count_by_status(conn: sqlite3.Connection) -> dict[str, int]:
    """Return ``{status: count}`` for every status present in the table."""
    rows = conn.execute(
        "SELECT status, COUNT(*) AS n FROM scrape_progress GROUP BY status"
    ).fetchall()
    return {r["status"]: r["n"] for r in rows}


def list_progress(
    conn: sqlite3.Connection,
    status: Optional[str] = None,
) -> list[ScrapeProgress]:
    """Return progress records, optionally filtered by *status*."""
    if status:
        rows = conn.execute(
            "SELECT * FROM scrape_progress WHERE status = ? ORDER BY article_order, url",
            (status,),
        ).fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM scrape_progress ORDER BY article_order, url"
        ).fetchall()
    return [_row_to_progress(r) for r in rows]

