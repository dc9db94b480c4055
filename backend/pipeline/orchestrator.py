"""Batch scrape orchestrator.

A full scrape is a sequence of small, independently runnable steps::

    initialize_scrape   fetch TOC → parse → assign orders → queue URLs
    run_batch           claim ≤ N pending URLs → fetch → parse → store
    run_until_done      drive run_batch until nothing is pending

All state lives in the ``scrape_progress`` table, so any step can be
interrupted and re-run.  Articles inside one batch are processed strictly
one after another with a fixed delay between requests.  A failure while
processing one article is recorded on its progress row and never stops the
batch.
"""

from __future__ import annotations

import sqlite3
import time
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Callable, ContextManager, Mapping, Optional

import httpx

from backend.config import settings
from backend.db.articles import refresh_article
from backend.db.models import COMPLETED, FAILED, PENDING, PROCESSING, ParagraphData, ScrapeProgress
from backend.db.paragraphs import (
    delete_paragraph,
    insert_paragraph,
    list_article_paragraphs,
    replace_paragraph,
)
from backend.db.progress import (
    claim_pending,
    count_pending,
    queue_descriptor,
    release_stale_claims,
    upsert_progress,
)
from backend.errors import NotFoundError
from backend.pipeline.reconcile import ReconcilePlan, reconcile
from backend.scraper.article import parse_article
from backend.scraper.fetcher import fetch_toc, make_client
from backend.scraper.models import ArticleDescriptor, ParsedArticle
from backend.scraper.redirects import fetch_article
from backend.scraper.toc import assign_orders, parse_toc
from backend.text.normalize import count_words

Sleep = Callable[[float], None]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class InitSummary:
    found: int
    queued: int
    skipped_completed: int
    released: int = 0


@dataclass
class BatchResult:
    batch_size: int
    claimed: int = 0
    succeeded: int = 0
    failed: int = 0
    remaining: int = 0
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def has_more(self) -> bool:
        """A full batch or a non-zero pending recount means another step is due."""
        return self.claimed >= self.batch_size or self.remaining > 0


@dataclass
class RescrapeResult:
    article_title: str
    url: str
    final_url: str
    paragraph_count: int
    replaced: int
    inserted: int
    deleted: int


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _client_scope(client: Optional[httpx.Client]) -> ContextManager[httpx.Client]:
    """Borrow *client* as-is, or open a fresh one that closes with the step."""
    return nullcontext(client) if client is not None else make_client()


def _descriptor_from_progress(record: ScrapeProgress) -> ArticleDescriptor:
    return ArticleDescriptor(
        url=record.url,
        book_title=record.book_title or "",
        sequence_title=record.sequence_title or "",
        book_order=record.book_order or 0,
        sequence_order=record.sequence_order or 0,
        article_order=record.article_order or 0,
    )


def _paragraph_data(
    parsed: ParsedArticle,
    final_url: str,
    descriptor: ArticleDescriptor,
) -> list[ParagraphData]:
    return [
        ParagraphData(
            content=content,
            book_title=descriptor.book_title,
            sequence_title=descriptor.sequence_title,
            article_title=parsed.title,
            article_url=final_url,
            index_in_article=index,
            word_count=count_words(content),
            book_order=descriptor.book_order,
            sequence_order=descriptor.sequence_order,
            article_order=descriptor.article_order,
        )
        for index, content in enumerate(parsed.paragraphs)
    ]


def store_article(
    conn: sqlite3.Connection,
    parsed: ParsedArticle,
    final_url: str,
    descriptor: ArticleDescriptor,
    old_by_index: Mapping[int, int],
    previous_title: Optional[str] = None,
) -> ReconcilePlan:
    """Persist one parsed article in a single transaction.

    Paragraphs are reconciled by position against *old_by_index*, then the
    article aggregate is refreshed.  When a re-scrape changed the title, the
    aggregate under *previous_title* is refreshed too.
    """
    plan = reconcile(old_by_index, _paragraph_data(parsed, final_url, descriptor))

    with conn:
        for paragraph_id in plan.to_delete:
            delete_paragraph(conn, paragraph_id)
        for upsert in plan.to_upsert:
            if upsert.existing_id is not None:
                replace_paragraph(conn, upsert.existing_id, upsert.data)
            else:
                insert_paragraph(conn, upsert.data)
        refresh_article(conn, parsed.title)
        if previous_title and previous_title != parsed.title:
            refresh_article(conn, previous_title)

    return plan


def _scrape_one(
    conn: sqlite3.Connection,
    descriptor: ArticleDescriptor,
    client: httpx.Client,
) -> tuple[ParsedArticle, ReconcilePlan]:
    fetched = fetch_article(descriptor.url, client)
    parsed = parse_article(fetched.markdown)
    if not parsed.end_marker_found:
        print(f"[SCRAPE] ⚠ No end marker [ ][N] found in {fetched.final_url}")

    existing = list_article_paragraphs(conn, parsed.title)
    old_by_index = {p.index_in_article: p.id for p in existing}
    plan = store_article(conn, parsed, fetched.final_url, descriptor, old_by_index)
    return parsed, plan


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def initialize_scrape(
    conn: sqlite3.Connection,
    page_limit: Optional[int] = None,
    client: Optional[httpx.Client] = None,
) -> InitSummary:
    """Fetch the table of contents and queue every article URL.

    Completed URLs stay completed; failed or pending ones are re-queued with
    refreshed order metadata.  Records left in ``processing`` by an
    interrupted step go back to ``pending``.

    Raises:
        FetchError: If the TOC cannot be fetched.  Nothing is queued.
    """
    with _client_scope(client) as http:
        toc_markdown = fetch_toc(http)

    entries = parse_toc(toc_markdown)
    print(f"[TOC] Found {len(entries)} articles.")
    if page_limit:
        entries = entries[:page_limit]

    released = release_stale_claims(conn)
    queued = 0
    descriptors = assign_orders(entries)
    for descriptor in descriptors:
        if queue_descriptor(conn, descriptor):
            queued += 1

    summary = InitSummary(
        found=len(descriptors),
        queued=queued,
        skipped_completed=len(descriptors) - queued,
        released=released,
    )
    print(
        f"[TOC] Queued {summary.queued} URL(s); "
        f"{summary.skipped_completed} already completed."
    )
    return summary


def run_batch(
    conn: sqlite3.Connection,
    batch_size: Optional[int] = None,
    client: Optional[httpx.Client] = None,
    sleep: Sleep = time.sleep,
) -> BatchResult:
    """Claim up to *batch_size* pending URLs and scrape them one by one.

    Each article is fetched (one redirect hop), parsed, and stored with its
    word counts; its progress row ends ``completed`` or ``failed`` with the
    error message.  Safe to call repeatedly and concurrently: claiming is
    atomic.
    """
    size = batch_size or settings.batch_size
    claimed = claim_pending(conn, size)
    result = BatchResult(batch_size=size, claimed=len(claimed))

    with _client_scope(client) as http:
        for position, record in enumerate(claimed):
            if position:
                sleep(settings.scrape_delay)
            try:
                parsed, plan = _scrape_one(conn, _descriptor_from_progress(record), http)
            except Exception as exc:  # noqa: BLE001
                result.failed += 1
                result.failures[record.url] = str(exc)
                print(f"[SCRAPE] ✗ Failed {record.url!r}: {exc}")
                upsert_progress(conn, record.url, FAILED, str(exc))
                continue

            upsert_progress(conn, record.url, COMPLETED)
            result.succeeded += 1
            print(
                f"[SCRAPE] ✓ {parsed.title} "
                f"({len(parsed.paragraphs)} paragraph(s), {plan.replaced} replaced)"
            )

    result.remaining = count_pending(conn)
    print(
        f"[SCRAPE] Batch done: {result.succeeded} ok, {result.failed} failed, "
        f"{result.remaining} pending."
    )
    return result


def run_until_done(
    conn: sqlite3.Connection,
    batch_size: Optional[int] = None,
    client: Optional[httpx.Client] = None,
    sleep: Sleep = time.sleep,
    max_batches: Optional[int] = None,
) -> list[BatchResult]:
    """Run batch steps back to back until no pending work is left."""
    results: list[BatchResult] = []
    with _client_scope(client) as http:
        while max_batches is None or len(results) < max_batches:
            result = run_batch(conn, batch_size, client=http, sleep=sleep)
            results.append(result)
            if not result.has_more or result.claimed == 0:
                break
    return results


def scrape_all(
    conn: sqlite3.Connection,
    page_limit: Optional[int] = None,
    batch_size: Optional[int] = None,
    client: Optional[httpx.Client] = None,
    sleep: Sleep = time.sleep,
) -> tuple[InitSummary, list[BatchResult]]:
    """Initialise from the TOC, then scrape everything that is pending."""
    with _client_scope(client) as http:
        summary = initialize_scrape(conn, page_limit, client=http)
        results = run_until_done(conn, batch_size, client=http, sleep=sleep)
    return summary, results


def rescrape_article(
    conn: sqlite3.Connection,
    article_title: str,
    client: Optional[httpx.Client] = None,
) -> RescrapeResult:
    """Fetch *article_title* again and reconcile its stored paragraphs.

    Paragraph identity is preserved by position: index *i* keeps its id,
    indexes the new parse no longer produces are deleted.  Book, sequence
    and order metadata are carried over from the stored paragraphs.  On
    failure the URL is marked ``failed``, the old paragraphs stay untouched,
    and the error is re-raised.

    Raises:
        NotFoundError: If no paragraph is stored under *article_title*.
        FetchError: If the page or its redirect target cannot be fetched.
        FormatError: If the page no longer parses.
    """
    existing = list_article_paragraphs(conn, article_title)
    if not existing:
        raise NotFoundError(f"Article {article_title!r} not found")

    first = existing[0]
    descriptor = ArticleDescriptor(
        url=first.article_url,
        book_title=first.book_title,
        sequence_title=first.sequence_title,
        book_order=first.book_order,
        sequence_order=first.sequence_order,
        article_order=first.article_order,
    )
    old_by_index = {p.index_in_article: p.id for p in existing}
    url = descriptor.url

    upsert_progress(conn, url, PENDING)
    print(f"[RESCRAPE] {article_title!r}: {len(existing)} existing paragraph(s) at {url}")

    upsert_progress(conn, url, PROCESSING)
    try:
        with _client_scope(client) as http:
            fetched = fetch_article(url, http)
        parsed = parse_article(fetched.markdown)
        plan = store_article(
            conn,
            parsed,
            fetched.final_url,
            descriptor,
            old_by_index,
            previous_title=article_title,
        )
    except Exception as exc:
        print(f"[RESCRAPE] ✗ Failed {url!r}: {exc}")
        upsert_progress(conn, url, FAILED, str(exc))
        raise

    upsert_progress(conn, url, COMPLETED)
    print(f"[RESCRAPE] ✓ {parsed.title!r} with {len(parsed.paragraphs)} paragraph(s)")
    return RescrapeResult(
        article_title=parsed.title,
        url=url,
        final_url=fetched.final_url,
        paragraph_count=len(parsed.paragraphs),
        replaced=plan.replaced,
        inserted=plan.inserted,
        deleted=len(plan.to_delete),
    )
