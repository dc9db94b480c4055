"""CRUD operations for the ``paragraphs`` table."""

from __future__ import annotations

import random
import sqlite3
from typing import Optional

from backend.db.models import Paragraph, ParagraphData
from backend.text.normalize import count_words

_COLUMNS = (
    "content",
    "book_title",
    "sequence_title",
    "article_title",
    "article_url",
    "index_in_article",
    "word_count",
    "book_order",
    "sequence_order",
    "article_order",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_paragraph(row: sqlite3.Row) -> Paragraph:
    return Paragraph(id=row["id"], **{col: row[col] for col in _COLUMNS})


def _values(data: ParagraphData) -> tuple:
    return tuple(getattr(data, col) for col in _COLUMNS)


# ---------------------------------------------------------------------------
# Writes: callers own the transaction
# ---------------------------------------------------------------------------
# The orchestrator persists one article's paragraphs atomically, so these
# helpers do not commit on their own.

def insert_paragraph(conn: sqlite3.Connection, data: ParagraphData) -> int:
    """Insert *data* and return the new paragraph id."""
    placeholders = ", ".join("?" for _ in _COLUMNS)
    cursor = conn.execute(
        f"INSERT INTO paragraphs ({', '.join(_COLUMNS)}) VALUES ({placeholders})",  # noqa: S608
        _values(data),
    )
    return int(cursor.lastrowid)


def replace_paragraph(conn: sqlite3.Connection, paragraph_id: int, data: ParagraphData) -> None:
    """Overwrite every field of paragraph *paragraph_id*, keeping its id.

    Raises:
        ValueError: If the paragraph does not exist.
    """
    set_clause = ", ".join(f"{col} = ?" for col in _COLUMNS)
    cursor = conn.execute(
        f"UPDATE paragraphs SET {set_clause} WHERE id = ?",  # noqa: S608
        _values(data) + (paragraph_id,),
    )
    if cursor.rowcount == 0:
        raise ValueError(f"Paragraph not found: {paragraph_id!r}")


def delete_paragraph(conn: sqlite3.Connection, paragraph_id: int) -> None:
    """Delete a paragraph.  No-op if it does not exist."""
    conn.execute("DELETE FROM paragraphs WHERE id = ?", (paragraph_id,))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_paragraph(conn: sqlite3.Connection, paragraph_id: int) -> Optional[Paragraph]:
    """Fetch a single paragraph by id.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM paragraphs WHERE id = ?", (paragraph_id,)
    ).fetchone()
    return _row_to_paragraph(row) if row else None


def list_article_paragraphs(conn: sqlite3.Connection, article_title: str) -> list[Paragraph]:
    """Return the paragraphs of *article_title* in reading order."""
    rows = conn.execute(
        "SELECT * FROM paragraphs WHERE article_title = ? ORDER BY index_in_article",
        (article_title,),
    ).fetchall()
    return [_row_to_paragraph(r) for r in rows]


def count_article_paragraphs(conn: sqlite3.Connection, article_title: str) -> int:
    row = conn.execute(
        "SELECT COUNT(*) FROM paragraphs WHERE article_title = ?", (article_title,)
    ).fetchone()
    return row[0]


def paragraph_count(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM paragraphs").fetchone()[0]


def random_paragraph_in_range(
    conn: sqlite3.Connection,
    min_words: int,
    max_words: int,
    rng: Optional[random.Random] = None,
) -> Optional[Paragraph]:
    """Pick a uniformly random paragraph whose word count is within bounds.

    Both bounds are inclusive.  Uses the ``word_count`` index to count
    candidates and jump to a random offset.  Returns ``None`` when no
    paragraph qualifies.
    """
    count = conn.execute(
        "SELECT COUNT(*) FROM paragraphs WHERE word_count BETWEEN ? AND ?",
        (min_words, max_words),
    ).fetchone()[0]
    if count == 0:
        return None

    offset = (rng or random).randrange(count)
    row = conn.execute(
        """
        SELECT * FROM paragraphs
        WHERE  word_count BETWEEN ? AND ?
        ORDER  BY word_count, id
        LIMIT  1 OFFSET ?
        """,
        (min_words, max_words, offset),
    ).fetchone()
    return _row_to_paragraph(row) if row else None


def verify_word_counts(conn: sqlite3.Connection, fix: bool = False) -> list[tuple[int, int, int]]:
    """Check every stored ``word_count`` against :func:`count_words` of its content.

    Args:
        fix: Rewrite mismatching counts with the recomputed value.

    Returns:
        ``(paragraph_id, stored, recomputed)`` for each mismatch found.
    """
    mismatches: list[tuple[int, int, int]] = []
    for row in conn.execute("SELECT id, content, word_count FROM paragraphs ORDER BY id"):
        recomputed = count_words(row["content"])
        if recomputed != row["word_count"]:
            mismatches.append((row["id"], row["word_count"], recomputed))

    if fix and mismatches:
        with conn:
            conn.executemany(
                "UPDATE paragraphs SET word_count = ? WHERE id = ?",
                [(recomputed, pid) for pid, _stored, recomputed in mismatches],
            )

    return mismatches
