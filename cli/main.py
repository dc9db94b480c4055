"""Type Harder CLI: entry-point for all backend operations.

Usage:
    python cli/main.py --help

Command groups:
    db        → database initialisation and totals
    scrape    → TOC queueing, batch steps, re-scrape, verification
    articles  → browse scraped articles
    parse     → offline parsing of saved markdown
    practice  → type a stored paragraph in the terminal
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that
# `from backend.xxx import ...` works when the CLI is invoked as
# `python cli/main.py` from any working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import typer

from backend.config import settings
from backend.db import get_connection, init_db
from backend.db.articles import database_stats
from cli.commands.articles import articles_app
from cli.commands.parse import parse_app
from cli.commands.practice import practice_app
from cli.commands.scrape import scrape_app

app = typer.Typer(
    name="typerace",
    help="Type Harder backend CLI.",
    no_args_is_help=True,
)

# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


@db_app.command("stats")
def db_stats() -> None:
    """Show paragraph, article and scrape-progress totals."""
    conn = get_connection()
    init_db(conn)
    try:
        stats = database_stats(conn)
    finally:
        conn.close()

    typer.echo(f"[db stats] Paragraphs : {stats['paragraph_count']}")
    typer.echo(f"[db stats] Articles   : {stats['article_count']}")
    typer.echo(f"[db stats] URLs       : {stats['scrape_progress_count']}")
    for status, count in sorted(stats["status_counts"].items()):
        typer.echo(f"[db stats]   {status:<10} {count}")


# ---------------------------------------------------------------------------
# Command groups
# ---------------------------------------------------------------------------
app.add_typer(scrape_app, name="scrape")
app.add_typer(articles_app, name="articles")
app.add_typer(parse_app, name="parse")
app.add_typer(practice_app, name="practice")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
