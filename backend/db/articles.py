"""Article aggregates: one row per distinct ``article_title``.

``paragraph_count`` is a cache of ``COUNT(paragraphs WHERE article_title = X)``.
:func:`refresh_article` keeps a single row in sync after its paragraphs
change; :func:`rebuild_articles` regenerates the whole table from scratch.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from backend.db.models import Article
from backend.db.progress import count_by_status

_ARTICLE_FROM_PARAGRAPHS = """
    SELECT p.article_title,
           p.book_title,
           p.book_order,
           p.sequence_title,
           p.sequence_order,
           p.article_url,
           p.article_order,
           (SELECT COUNT(*) FROM paragraphs c
            WHERE c.article_title = p.article_title) AS paragraph_count
    FROM   paragraphs p
    WHERE  p.id = (SELECT MIN(id) FROM paragraphs f
                   WHERE f.article_title = p.article_title)
"""


def _row_to_article(row: sqlite3.Row) -> Article:
    return Article(
        article_title=row["article_title"],
        book_title=row["book_title"],
        book_order=row["book_order"],
        sequence_title=row["sequence_title"],
        sequence_order=row["sequence_order"],
        article_url=row["article_url"],
        article_order=row["article_order"],
        paragraph_count=row["paragraph_count"],
    )


def refresh_article(conn: sqlite3.Connection, article_title: str) -> Optional[Article]:
    """Recompute the aggregate for *article_title* from its live paragraphs.

    Metadata is taken from the article's first stored paragraph.  The row is
    deleted when no paragraph is left.  Does not commit; callers wrap it in
    the same transaction as the paragraph writes.

    Returns:
        The refreshed :class:`~backend.db.models.Article`, or ``None`` if the
        article no longer has paragraphs.
    """
    row = conn.execute(
        _ARTICLE_FROM_PARAGRAPHS + " AND p.article_title = ?", (article_title,)
    ).fetchone()

    if row is None:
        conn.execute("DELETE FROM articles WHERE article_title = ?", (article_title,))
        return None

    conn.execute(
        """
        INSERT INTO articles (
            article_title, book_title, book_order, sequence_title,
            sequence_order, article_url, article_order, paragraph_count
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(article_title) DO UPDATE SET
            book_title      = excluded.book_title,
            book_order      = excluded.book_order,
            sequence_title  = excluded.sequence_title,
            sequence_order  = excluded.sequence_order,
            article_url     = excluded.article_url,
            article_order   = excluded.article_order,
            paragraph_count = excluded.paragraph_count
        """,
        tuple(row),
    )
    return _row_to_article(row)


def rebuild_articles(conn: sqlite3.Connection) -> int:
    """Drop every aggregate and regenerate them from the paragraphs table.

    Returns:
        The number of article rows created.
    """
    with conn:
        conn.execute("DELETE FROM articles")
        cursor = conn.execute(
            """
            INSERT INTO articles (
                article_title, book_title, book_order, sequence_title,
                sequence_order, article_url, article_order, paragraph_count
            )
            """
            + _ARTICLE_FROM_PARAGRAPHS
        )
    return cursor.rowcount


def get_article(conn: sqlite3.Connection, article_title: str) -> Optional[Article]:
    row = conn.execute(
        "SELECT * FROM articles WHERE article_title = ?", (article_title,)
    ).fetchone()
    return _row_to_article(row) if row else None


def list_articles(conn: sqlite3.Connection) -> list[Article]:
    """Return all article aggregates in reading order."""
    rows = conn.execute(
        "SELECT * FROM articles ORDER BY article_order, article_title"
    ).fetchall()
    return [_row_to_article(r) for r in rows]


def database_stats(conn: sqlite3.Connection) -> dict:
    """Paragraph / article / progress totals and per-status progress counts."""
    paragraphs = conn.execute("SELECT COUNT(*) FROM paragraphs").fetchone()[0]
    articles = conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]
    progress = conn.execute("SELECT COUNT(*) FROM scrape_progress").fetchone()[0]
    return {
        "paragraph_count": paragraphs,
        "article_count": articles,
        "scrape_progress_count": progress,
        "status_counts": count_by_status(conn),
    }
