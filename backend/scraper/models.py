"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass
class RawPage:
    """The raw HTTP response for a single markdown fetch."""

    url: str
    markdown: str
    status_code: int


@dataclass(frozen=True)
class TocEntry:
    """One article line of the table of contents."""

    url: str
    book_title: str
    sequence_title: str


@dataclass(frozen=True)
class ArticleDescriptor:
    """A TOC entry with its book / sequence / global ordering assigned."""

    url: str
    book_title: str
    sequence_title: str
    book_order: int
    sequence_order: int
    article_order: int


@dataclass
class FetchedArticle:
    """Markdown for an article after at most one redirect hop."""

    markdown: str
    final_url: str
    redirected: bool = False


@dataclass
class ParsedArticle:
    """Title and cleaned paragraphs extracted from article markdown."""

    title: str
    paragraphs: List[str] = field(default_factory=list)
    end_marker_found: bool = True
