"""Article commands for browsing what has been scraped."""

import typer

from backend.db import get_connection, init_db
from backend.db.articles import list_articles, rebuild_articles
from backend.db.paragraphs import list_article_paragraphs

articles_app = typer.Typer(help="Browse scraped articles.", no_args_is_help=True)


@articles_app.command("list")
def articles_list() -> None:
    """List articles in reading order."""
    conn = get_connection()
    init_db(conn)
    try:
        articles = list_articles(conn)
    finally:
        conn.close()

    if not articles:
        typer.echo("No articles found.")
        return
    current_book = None
    for a in articles:
        if a.book_title != current_book:
            current_book = a.book_title
            typer.echo(f"📚 {current_book}")
        typer.echo(f"   {a.article_order:>4}. {a.article_title} ({a.paragraph_count} paragraphs)")


@articles_app.command("show")
def articles_show(
    title: str = typer.Argument(..., help="Exact article title."),
) -> None:
    """Print the paragraphs of one article with their word counts."""
    conn = get_connection()
    init_db(conn)
    try:
        paragraphs = list_article_paragraphs(conn, title)
    finally:
        conn.close()

    if not paragraphs:
        typer.echo(f"❌ Article not found: {title!r}")
        raise typer.Exit(code=1)
    typer.echo(f"{title}  ({paragraphs[0].article_url})")
    for p in paragraphs:
        typer.echo(f"\n[{p.index_in_article}] #{p.id} · {p.word_count} words")
        typer.echo(p.content)


@articles_app.command("rebuild")
def articles_rebuild() -> None:
    """Regenerate article aggregates from the paragraphs table."""
    conn = get_connection()
    init_db(conn)
    try:
        count = rebuild_articles(conn)
    finally:
        conn.close()
    typer.echo(f"✅ Rebuilt {count} article(s).")
