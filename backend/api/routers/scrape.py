"""Scrape orchestration endpoints.

Routes
------
POST /scrape/init        Fetch the TOC and queue article URLs
POST /scrape/batch       Run one batch step
POST /scrape/run         Initialise + scrape everything in the background
POST /scrape/rescrape    Re-fetch one article and reconcile its paragraphs
GET  /scrape/stats       Paragraph / article / progress totals
GET  /scrape/progress    Progress records (optional ?status= filter)
POST /scrape/verify      Check stored word counts (optionally fix them)
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel, Field

from backend.api.dependencies import locked_db
from backend.db import get_connection, init_db
from backend.db.articles import database_stats
from backend.db.models import STATUSES
from backend.db.paragraphs import verify_word_counts
from backend.db.progress import list_progress
from backend.errors import FetchError, FormatError, NotFoundError
from backend.pipeline.orchestrator import (
    initialize_scrape,
    rescrape_article,
    run_batch,
    scrape_all,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class InitRequest(BaseModel):
    page_limit: Optional[int] = Field(default=None, ge=1)


class BatchRequest(BaseModel):
    batch_size: Optional[int] = Field(default=None, ge=1)


class RescrapeRequest(BaseModel):
    article_title: str = Field(min_length=1)


class VerifyRequest(BaseModel):
    fix: bool = False


class InitResponse(BaseModel):
    found: int
    queued: int
    skipped_completed: int
    released: int


class BatchResponse(BaseModel):
    batch_size: int
    claimed: int
    succeeded: int
    failed: int
    remaining: int
    has_more: bool
    failures: dict[str, str]


class RescrapeResponse(BaseModel):
    article_title: str
    url: str
    final_url: str
    paragraph_count: int
    replaced: int
    inserted: int
    deleted: int


class StatsResponse(BaseModel):
    paragraph_count: int
    article_count: int
    scrape_progress_count: int
    status_counts: dict[str, int]


class ProgressResponse(BaseModel):
    url: str
    status: str
    last_processed_at: Optional[int]
    error_message: Optional[str]
    book_title: Optional[str]
    sequence_title: Optional[str]
    article_order: Optional[int]


class Mismatch(BaseModel):
    paragraph_id: int
    stored: int
    recomputed: int


class VerifyResponse(BaseModel):
    fixed: bool
    mismatches: list[Mismatch]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _run_in_background(page_limit: Optional[int]) -> None:
    """Full scrape on a dedicated connection so request handlers stay usable."""
    conn = get_connection()
    init_db(conn)
    try:
        summary, results = scrape_all(conn, page_limit=page_limit)
    except FetchError as exc:
        print(f"[SCRAPE] ✗ Background run aborted: {exc}")
        return
    finally:
        conn.close()
    done = sum(r.succeeded for r in results)
    print(f"[SCRAPE] Background run finished: {summary.queued} queued, {done} scraped.")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/init", response_model=InitResponse)
def init(
    body: Optional[InitRequest] = None,
    conn: sqlite3.Connection = Depends(locked_db),
) -> dict[str, Any]:
    """Fetch the table of contents and queue every article for scraping."""
    page_limit = body.page_limit if body else None
    try:
        summary = initialize_scrape(conn, page_limit=page_limit)
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=f"TOC fetch failed: {exc}") from exc
    return asdict(summary)


@router.post("/batch", response_model=BatchResponse)
def batch(
    body: Optional[BatchRequest] = None,
    conn: sqlite3.Connection = Depends(locked_db),
) -> dict[str, Any]:
    """Claim and scrape one batch of pending articles."""
    result = run_batch(conn, batch_size=body.batch_size if body else None)
    return {**asdict(result), "has_more": result.has_more}


@router.post("/run", status_code=202)
def run(
    background_tasks: BackgroundTasks,
    body: Optional[InitRequest] = None,
) -> dict[str, Any]:
    """Schedule a full scrape and return immediately."""
    page_limit = body.page_limit if body else None
    background_tasks.add_task(_run_in_background, page_limit)
    return {"scheduled": True, "page_limit": page_limit}


@router.post("/rescrape", response_model=RescrapeResponse)
def rescrape(
    body: RescrapeRequest,
    conn: sqlite3.Connection = Depends(locked_db),
) -> dict[str, Any]:
    """Re-fetch one article by title, preserving paragraph ids by position."""
    try:
        result = rescrape_article(conn, body.article_title)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except FormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return asdict(result)


@router.get("/stats", response_model=StatsResponse)
def stats(conn: sqlite3.Connection = Depends(locked_db)) -> dict[str, Any]:
    return database_stats(conn)


@router.get("/progress", response_model=list[ProgressResponse])
def progress(
    status: Optional[str] = None,
    conn: sqlite3.Connection = Depends(locked_db),
) -> list[dict[str, Any]]:
    """List progress records, optionally only those with ``status``."""
    if status is not None and status not in STATUSES:
        raise HTTPException(status_code=422, detail=f"Unknown status: {status!r}")
    records = list_progress(conn, status=status)
    return [asdict(r) for r in records]


@router.post("/verify", response_model=VerifyResponse)
def verify(
    body: Optional[VerifyRequest] = None,
    conn: sqlite3.Connection = Depends(locked_db),
) -> dict[str, Any]:
    """Recompute every paragraph's word count and report the mismatches."""
    fix = body.fix if body else False
    mismatches = verify_word_counts(conn, fix=fix)
    return {
        "fixed": fix,
        "mismatches": [
            {"paragraph_id": pid, "stored": stored, "recomputed": recomputed}
            for pid, stored, recomputed in mismatches
        ],
    }
