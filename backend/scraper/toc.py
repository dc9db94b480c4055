"""Table-of-contents parsing.

The contents page nests books, sequences and articles purely by
indentation::

    *   [Book I: Map and Territory][5]
        1.  [Predictably Wrong][6]
            1.  [What Do I Mean By "Rationality"?][7]

Indentation depth alone decides whether a numbered entry is a sequence
(exactly four spaces) or an article (eight or more).  Entries without a
resolvable URL or without a parent book/sequence are dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from backend.config import settings
from backend.scraper.models import ArticleDescriptor, TocEntry
from backend.scraper.references import collect_references

_BOOK_RE = re.compile(r"^\*\s+\[Book\s+[IVXLC]+:\s+(.+)\]\[(\d+)\]")
_SEQUENCE_RE = re.compile(r"^\s{4}\d+\.\s+\[([^\]]+)\]\[(\d+)\]")
_ARTICLE_RE = re.compile(r"^\s{8,}\d+\.\s+\[([^\]]+)\]\[(\d+)\]")


def parse_toc(markdown: str, site_base_url: Optional[str] = None) -> List[TocEntry]:
    """Return every article entry of the contents page, in page order.

    Args:
        markdown: Contents page markdown.
        site_base_url: Only reference definitions on this site are accepted.
            Defaults to ``settings.site_base_url``.
    """
    base = (site_base_url or settings.site_base_url).rstrip("/")
    refs = collect_references(markdown, url_prefix=base)

    entries: List[TocEntry] = []
    current_book = ""
    current_sequence = ""

    for line in markdown.split("\n"):
        book = _BOOK_RE.match(line)
        if book:
            current_book = book.group(1).strip()
            continue

        sequence = _SEQUENCE_RE.match(line)
        if sequence and current_book:
            current_sequence = sequence.group(1).strip()
            continue

        article = _ARTICLE_RE.match(line)
        if article and current_book and current_sequence:
            url = refs.get(article.group(2))
            if url:
                entries.append(
                    TocEntry(
                        url=url,
                        book_title=current_book,
                        sequence_title=current_sequence,
                    )
                )

    return entries


@dataclass
class _OrderState:
    """Running counters folded over the TOC entries."""

    book_orders: Dict[str, int] = field(default_factory=dict)
    sequence_counts: Dict[str, int] = field(default_factory=dict)
    article_order: int = 0

    def assign(self, entry: TocEntry) -> ArticleDescriptor:
        if entry.book_title not in self.book_orders:
            self.book_orders[entry.book_title] = len(self.book_orders)

        key = f"{entry.book_title}|{entry.sequence_title}"
        self.sequence_counts[key] = self.sequence_counts.get(key, 0) + 1
        self.article_order += 1

        return ArticleDescriptor(
            url=entry.url,
            book_title=entry.book_title,
            sequence_title=entry.sequence_title,
            book_order=self.book_orders[entry.book_title],
            sequence_order=self.sequence_counts[key],
            article_order=self.article_order,
        )


def assign_orders(entries: Iterable[TocEntry]) -> List[ArticleDescriptor]:
    """Attach book, sequence and global article order to each entry.

    * ``book_order`` is 0-based, by first appearance of the book title.
    * ``sequence_order`` is the 1-based position of the article inside its
      ``book|sequence`` pair.
    * ``article_order`` is a 1-based running counter over all entries.
    """
    state = _OrderState()
    return [state.assign(entry) for entry in entries]
