"""Scrape commands: queue the TOC, run batches, re-scrape and verify."""

from typing import Optional

import typer

from backend.db import get_connection, init_db
from backend.db.models import STATUSES
from backend.db.paragraphs import verify_word_counts
from backend.db.progress import list_progress
from backend.errors import FetchError, FormatError, NotFoundError
from backend.pipeline.orchestrator import (
    initialize_scrape,
    rescrape_article,
    run_batch,
    run_until_done,
)

scrape_app = typer.Typer(help="Scrape the essay site into race paragraphs.", no_args_is_help=True)


@scrape_app.command("init")
def scrape_init(
    limit: Optional[int] = typer.Option(None, "--limit", help="Only queue the first N articles."),
) -> None:
    """Fetch the table of contents and queue every article URL."""
    conn = get_connection()
    init_db(conn)
    try:
        summary = initialize_scrape(conn, page_limit=limit)
    except FetchError as e:
        typer.echo(f"❌ Could not fetch the table of contents: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()

    typer.echo(
        f"✅ Queued {summary.queued} of {summary.found} article(s) "
        f"({summary.skipped_completed} already completed)."
    )


@scrape_app.command("batch")
def scrape_batch(
    size: Optional[int] = typer.Option(None, "--size", help="Batch size (default from settings)."),
) -> None:
    """Scrape one batch of pending articles."""
    conn = get_connection()
    init_db(conn)
    try:
        result = run_batch(conn, batch_size=size)
    finally:
        conn.close()

    typer.echo(
        f"✅ {result.succeeded} scraped, {result.failed} failed, "
        f"{result.remaining} still pending."
    )
    for url, message in result.failures.items():
        typer.echo(f"   ❌ {url}: {message}")
    if result.has_more:
        typer.echo("More work remains; run 'scrape batch' again or 'scrape run'.")


@scrape_app.command("run")
def scrape_run(
    limit: Optional[int] = typer.Option(None, "--limit", help="Only queue the first N articles."),
    size: Optional[int] = typer.Option(None, "--size", help="Batch size (default from settings)."),
    skip_init: bool = typer.Option(False, "--skip-init", help="Resume pending work without re-reading the TOC."),
) -> None:
    """Queue the TOC, then run batches until nothing is pending."""
    conn = get_connection()
    init_db(conn)
    try:
        if not skip_init:
            initialize_scrape(conn, page_limit=limit)
        results = run_until_done(conn, batch_size=size)
    except FetchError as e:
        typer.echo(f"❌ Could not fetch the table of contents: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()

    succeeded = sum(r.succeeded for r in results)
    failed = sum(r.failed for r in results)
    typer.echo(f"✅ Done in {len(results)} batch(es): {succeeded} scraped, {failed} failed.")


@scrape_app.command("rescrape")
def scrape_rescrape(
    title: str = typer.Argument(..., help="Exact article title."),
) -> None:
    """Re-fetch one article, keeping paragraph ids stable by position."""
    conn = get_connection()
    init_db(conn)
    try:
        result = rescrape_article(conn, title)
    except NotFoundError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)
    except (FetchError, FormatError) as e:
        typer.echo(f"❌ Re-scrape failed: {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()

    typer.echo(
        f"✅ {result.article_title}: {result.paragraph_count} paragraph(s) "
        f"({result.replaced} replaced, {result.inserted} new, {result.deleted} removed)"
    )


@scrape_app.command("progress")
def scrape_progress(
    status: Optional[str] = typer.Option(None, "--status", help="pending | processing | completed | failed"),
) -> None:
    """List scrape progress records."""
    if status is not None and status not in STATUSES:
        typer.echo(f"❌ Unknown status {status!r}. Use: {' | '.join(STATUSES)}")
        raise typer.Exit(code=1)

    conn = get_connection()
    init_db(conn)
    try:
        records = list_progress(conn, status=status)
    finally:
        conn.close()

    if not records:
        typer.echo("No progress records.")
        return
    for r in records:
        line = f" - [{r.status}] {r.url}"
        if r.error_message:
            line += f"  ({r.error_message})"
        typer.echo(line)


@scrape_app.command("verify")
def scrape_verify(
    fix: bool = typer.Option(False, "--fix", help="Rewrite mismatching word counts."),
) -> None:
    """Recompute every paragraph's word count and report mismatches."""
    conn = get_connection()
    init_db(conn)
    try:
        mismatches = verify_word_counts(conn, fix=fix)
    finally:
        conn.close()

    if not mismatches:
        typer.echo("✅ All word counts match.")
        return
    for pid, stored, recomputed in mismatches:
        typer.echo(f" - paragraph {pid}: stored {stored}, recomputed {recomputed}")
    verb = "Fixed" if fix else "Found"
    typer.echo(f"{verb} {len(mismatches)} mismatch(es).")
