"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

STATUSES = (PENDING, PROCESSING, COMPLETED, FAILED)


@dataclass
class ScrapeProgress:
    url: str
    status: str
    last_processed_at: Optional[int] = None
    error_message: Optional[str] = None
    book_title: Optional[str] = None
    sequence_title: Optional[str] = None
    book_order: Optional[int] = None
    sequence_order: Optional[int] = None
    article_order: Optional[int] = None


@dataclass
class ParagraphData:
    """Paragraph fields as produced by a scrape, before it has an id."""

    content: str
    book_title: str
    sequence_title: str
    article_title: str
    article_url: str
    index_in_article: int
    word_count: int
    book_order: int
    sequence_order: int
    article_order: int


@dataclass
class Paragraph(ParagraphData):
    id: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Article:
    article_title: str
    book_title: str
    book_order: int
    sequence_title: str
    sequence_order: int
    article_url: str
    article_order: int
    paragraph_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
