"""Tests for the CLI command groups.

Every test points the workspace at ``tmp_path`` so commands open a fresh
database file; network access is served by ``respx``.
"""

import httpx
import pytest
import respx
from typer.testing import CliRunner

from backend.db import get_connection, init_db
from backend.db.articles import rebuild_articles
from backend.db.models import ParagraphData
from backend.db.paragraphs import get_paragraph, insert_paragraph
from cli.commands.articles import articles_app
from cli.commands.parse import parse_app
from cli.commands.scrape import scrape_app
from cli.main import app

runner = CliRunner()

_SITE = "https://site"
_TOC = """\
*   [Book I: Map and Territory][1]
    1.  [Predictably Wrong][2]
        1.  [Alpha][3]

[1]: https://site/Map-and-Territory
[2]: https://site/Predictably-Wrong
[3]: https://site/Alpha
"""
_ALPHA = (
    "# Alpha\n[Home][1]\n\n# Alpha\n\n❦\n\nFirst paragraph.\n\nSecond one here.\n\n[ ][2]\n\n"
    "[1]: https://site/Home\n[2]: https://site/Next\n"
)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Fresh workspace and site settings for each test."""
    monkeypatch.setattr("backend.config.settings.workspace_dir", tmp_path)
    monkeypatch.setattr("backend.config.settings.site_base_url", _SITE)
    monkeypatch.setattr("backend.config.settings.toc_path", "Contents")
    monkeypatch.setattr("backend.config.settings.markdown_action", "markdown")
    monkeypatch.setattr("backend.config.settings.scrape_delay", 0)
    return tmp_path


def _seed(content: str = "one two three", index: int = 0, title: str = "Alpha") -> int:
    conn = get_connection()
    init_db(conn)
    with conn:
        pid = insert_paragraph(
            conn,
            ParagraphData(
                content=content,
                book_title="Map and Territory",
                sequence_title="Predictably Wrong",
                article_title=title,
                article_url=f"{_SITE}/{title}",
                index_in_article=index,
                word_count=len(content.split()),
                book_order=0,
                sequence_order=1,
                article_order=1,
            ),
        )
    rebuild_articles(conn)
    conn.close()
    return pid


# ---------------------------------------------------------------------------
# db
# ---------------------------------------------------------------------------

def test_db_stats(workspace):
    _seed()
    result = runner.invoke(app, ["db", "stats"])
    assert result.exit_code == 0
    assert "Paragraphs : 1" in result.stdout
    assert "Articles   : 1" in result.stdout


# ---------------------------------------------------------------------------
# scrape
# ---------------------------------------------------------------------------

def test_scrape_run(workspace):
    with respx.mock:
        respx.get(f"{_SITE}/Contents?action=markdown").mock(
            return_value=httpx.Response(200, text=_TOC)
        )
        respx.get(f"{_SITE}/Alpha?action=markdown").mock(
            return_value=httpx.Response(200, text=_ALPHA)
        )
        result = runner.invoke(scrape_app, ["run"])

    assert result.exit_code == 0
    assert "1 scraped, 0 failed" in result.stdout

    listing = runner.invoke(scrape_app, ["progress", "--status", "completed"])
    assert f"[completed] {_SITE}/Alpha" in listing.stdout


def test_scrape_init_then_batch_reports_failures(workspace):
    with respx.mock:
        respx.get(f"{_SITE}/Contents?action=markdown").mock(
            return_value=httpx.Response(200, text=_TOC)
        )
        respx.get(f"{_SITE}/Alpha?action=markdown").mock(return_value=httpx.Response(500))
        init = runner.invoke(scrape_app, ["init"])
        batch = runner.invoke(scrape_app, ["batch"])

    assert init.exit_code == 0
    assert "Queued 1 of 1" in init.stdout
    assert batch.exit_code == 0
    assert "0 scraped, 1 failed" in batch.stdout
    assert "HTTP 500" in batch.stdout


def test_scrape_init_toc_failure(workspace):
    with respx.mock:
        respx.get(f"{_SITE}/Contents?action=markdown").mock(
            side_effect=httpx.ConnectError("refused")
        )
        result = runner.invoke(scrape_app, ["init"])
    assert result.exit_code == 1
    assert "❌" in result.stdout


def test_scrape_progress_unknown_status(workspace):
    result = runner.invoke(scrape_app, ["progress", "--status", "bogus"])
    assert result.exit_code == 1


def test_scrape_rescrape(workspace):
    pid = _seed("stale text")
    with respx.mock:
        respx.get(f"{_SITE}/Alpha?action=markdown").mock(
            return_value=httpx.Response(200, text=_ALPHA)
        )
        result = runner.invoke(scrape_app, ["rescrape", "Alpha"])

    assert result.exit_code == 0
    assert "1 replaced, 1 new, 0 removed" in result.stdout

    conn = get_connection()
    assert get_paragraph(conn, pid).content == "First paragraph."
    conn.close()


def test_scrape_rescrape_unknown(workspace):
    result = runner.invoke(scrape_app, ["rescrape", "Nope"])
    assert result.exit_code == 1
    assert "not found" in result.stdout


def test_scrape_verify_fix(workspace):
    pid = _seed("three words here")
    conn = get_connection()
    with conn:
        conn.execute("UPDATE paragraphs SET word_count = 7 WHERE id = ?", (pid,))
    conn.close()

    result = runner.invoke(scrape_app, ["verify", "--fix"])
    assert "stored 7, recomputed 3" in result.stdout
    assert "Fixed 1 mismatch(es)." in result.stdout

    again = runner.invoke(scrape_app, ["verify"])
    assert "All word counts match" in again.stdout


# ---------------------------------------------------------------------------
# articles
# ---------------------------------------------------------------------------

def test_articles_list_and_show(workspace):
    _seed("first words", 0)
    _seed("second words", 1)

    listing = runner.invoke(articles_app, ["list"])
    assert listing.exit_code == 0
    assert "📚 Map and Territory" in listing.stdout
    assert "Alpha (2 paragraphs)" in listing.stdout

    shown = runner.invoke(articles_app, ["show", "Alpha"])
    assert shown.exit_code == 0
    assert "second words" in shown.stdout


def test_articles_show_unknown(workspace):
    result = runner.invoke(articles_app, ["show", "Nope"])
    assert result.exit_code == 1


def test_articles_list_empty(workspace):
    result = runner.invoke(articles_app, ["list"])
    assert "No articles found." in result.stdout


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------

def test_parse_toc(tmp_path):
    path = tmp_path / "contents.md"
    path.write_text(_TOC, encoding="utf-8")

    result = runner.invoke(parse_app, ["toc", str(path), "--base-url", _SITE])
    assert result.exit_code == 0
    assert f"Map and Territory › Predictably Wrong · {_SITE}/Alpha" in result.stdout
    assert "1 article(s)" in result.stdout


def test_parse_article(tmp_path):
    path = tmp_path / "alpha.md"
    path.write_text(_ALPHA, encoding="utf-8")

    result = runner.invoke(parse_app, ["article", str(path)])
    assert result.exit_code == 0
    assert "# Alpha" in result.stdout
    assert "Second one here." in result.stdout
    assert "2 paragraph(s)" in result.stdout


def test_parse_article_format_error(tmp_path):
    path = tmp_path / "broken.md"
    path.write_text("no heading here\n", encoding="utf-8")
    result = runner.invoke(parse_app, ["article", str(path)])
    assert result.exit_code == 1


def test_parse_missing_file(tmp_path):
    result = runner.invoke(parse_app, ["toc", str(tmp_path / "missing.md")])
    assert result.exit_code == 1
    assert "File not found" in result.stdout


# ---------------------------------------------------------------------------
# practice
# ---------------------------------------------------------------------------

def test_practice_word_by_word(workspace):
    pid = _seed("Wait… two words")
    result = runner.invoke(
        app,
        ["practice", "start", "--id", str(pid)],
        input="Wait...\ntwo\nwords\n",
    )
    assert result.exit_code == 0
    assert "📖 Alpha · 3 words" in result.stdout
    assert "Ellipsis: type ..." in result.stdout
    assert "3/3 words" in result.stdout
    assert "WPM" in result.stdout


def test_practice_retry_after_mismatch(workspace):
    pid = _seed("one two")
    result = runner.invoke(
        app,
        ["practice", "start", "--id", str(pid)],
        input="one\ntwx\ntwo\n",
    )
    assert result.exit_code == 0
    assert "Mismatch" in result.stdout
    assert "2/2 words" in result.stdout


def test_practice_no_paragraph(workspace):
    result = runner.invoke(app, ["practice", "start", "--min-words", "500", "--max-words", "600"])
    assert result.exit_code == 1
