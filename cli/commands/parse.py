"""Offline parsing of saved markdown documents, for checking the parsers."""

from pathlib import Path
from typing import Optional

import typer

from backend.errors import FormatError
from backend.scraper.article import parse_article
from backend.scraper.toc import assign_orders, parse_toc
from backend.text.normalize import count_words

parse_app = typer.Typer(help="Parse saved markdown without touching the database.", no_args_is_help=True)


def _read(path: Path) -> str:
    if not path.exists():
        typer.echo(f"❌ File not found: {path}")
        raise typer.Exit(code=1)
    return path.read_text(encoding="utf-8")


@parse_app.command("toc")
def parse_toc_cmd(
    path: Path = typer.Argument(..., help="Saved contents-page markdown."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Site base URL references must start with."),
) -> None:
    """List the article descriptors found in a contents page."""
    descriptors = assign_orders(parse_toc(_read(path), site_base_url=base_url))
    if not descriptors:
        typer.echo("No articles found.")
        return

    for d in descriptors:
        typer.echo(
            f"{d.article_order:>4}. [{d.book_order}/{d.sequence_order}] "
            f"{d.book_title} › {d.sequence_title} · {d.url}"
        )
    typer.echo(f"✅ {len(descriptors)} article(s).")


@parse_app.command("article")
def parse_article_cmd(
    path: Path = typer.Argument(..., help="Saved article markdown."),
) -> None:
    """Print the title and paragraphs extracted from an article page."""
    try:
        parsed = parse_article(_read(path))
    except FormatError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)

    typer.echo(f"# {parsed.title}")
    if not parsed.end_marker_found:
        typer.echo("⚠ No end marker found; the trailing block was dropped.")
    for index, paragraph in enumerate(parsed.paragraphs):
        typer.echo(f"\n[{index}] {count_words(paragraph)} words")
        typer.echo(paragraph)
    typer.echo(f"\n✅ {len(parsed.paragraphs)} paragraph(s).")
