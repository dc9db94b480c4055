"""Scrape pipeline package: batch orchestration and re-scrape reconciliation."""

from backend.pipeline.orchestrator import (
    BatchResult,
    InitSummary,
    RescrapeResult,
    initialize_scrape,
    rescrape_article,
    run_batch,
    run_until_done,
    scrape_all,
)
from backend.pipeline.reconcile import ReconcilePlan, Upsert, reconcile

__all__ = [
    "initialize_scrape",
    "run_batch",
    "run_until_done",
    "scrape_all",
    "rescrape_article",
    "reconcile",
    "InitSummary",
    "BatchResult",
    "RescrapeResult",
    "ReconcilePlan",
    "Upsert",
]
