"""Practice typing a stored paragraph in the terminal.

Each prompt takes the next word.  The entered text is handed to the typing
engine as the current input buffer and the separating space is typed for
you, so substitution sequences such as ``...`` or ``--`` work as in a race.
"""

import time
from typing import Optional

import typer

from backend.db import get_connection, init_db
from backend.db.paragraphs import get_paragraph, random_paragraph_in_range
from backend.race.engine import InputStatus, TypingSession, compute_wpm
from backend.race.progress import RaceProgressReporter
from backend.race.substitutions import special_characters
from cli.rendering import render_status_line, render_target

practice_app = typer.Typer(help="Practice typing stored paragraphs.", no_args_is_help=True)


@practice_app.command("start")
def practice_start(
    paragraph_id: Optional[int] = typer.Option(None, "--id", help="Paragraph id to type."),
    min_words: int = typer.Option(20, "--min-words", help="Minimum words for a random paragraph."),
    max_words: int = typer.Option(80, "--max-words", help="Maximum words for a random paragraph."),
    room: Optional[str] = typer.Option(None, "--room", help="Also publish progress to this race room."),
) -> None:
    """Type one paragraph word by word and report your speed."""
    conn = get_connection()
    init_db(conn)
    try:
        if paragraph_id is not None:
            paragraph = get_paragraph(conn, paragraph_id)
        else:
            paragraph = random_paragraph_in_range(conn, min_words, max_words)
    finally:
        conn.close()

    if paragraph is None:
        typer.echo("❌ No matching paragraph. Scrape some articles first.")
        raise typer.Exit(code=1)

    reporter = RaceProgressReporter(room) if room else None
    session = TypingSession.from_content(
        paragraph.content,
        on_word_completed=reporter.report if reporter else None,
    )

    typer.echo(f"📖 {paragraph.article_title} · {session.word_count} words")
    for hint in special_characters(session.target):
        if hint.sequences:
            typer.echo(f"   {hint.char}  {hint.name}: type {' or '.join(hint.sequences)}")

    started = time.monotonic()
    try:
        while not session.finished:
            typer.echo(render_target(session))
            word = typer.prompt(">", default="", show_default=False)
            result = session.feed(session.buffer + word)
            if result.status is InputStatus.ACCEPTED and session.target[session.current_index:].startswith(" "):
                result = session.feed(" ")
            if result.status is InputStatus.REJECTED:
                typer.echo(typer.style("✗ Mismatch, try that word again.", fg=typer.colors.RED))
            elif result.status is InputStatus.PENDING:
                typer.echo(typer.style("… Finish the sequence.", fg=typer.colors.YELLOW))
    finally:
        if reporter is not None:
            reporter.close()

    elapsed = time.monotonic() - started
    wpm = compute_wpm(session.words_completed, elapsed)
    typer.echo(render_target(session))
    typer.echo(render_status_line(session, wpm))
    typer.echo(f"✅ Finished in {elapsed:.1f}s at {wpm} WPM.")
