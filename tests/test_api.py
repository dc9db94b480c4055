"""Tests for the HTTP API.

Request handlers use an in-memory SQLite database via the FastAPI TestClient;
the background scrape run writes to the workspace database under ``tmp_path``.
Outbound page fetches are served by ``respx``.
"""

from __future__ import annotations

import threading

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from backend.api.app import create_app
from backend.db.articles import rebuild_articles
from backend.db.connection import get_connection
from backend.db.migrations import init_db
from backend.db.models import ParagraphData
from backend.db.paragraphs import insert_paragraph, list_article_paragraphs, paragraph_count
from backend.db.progress import queue_descriptor
from backend.scraper.models import ArticleDescriptor

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


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def db():
    conn = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(conn)
    yield conn
    conn.close()


@pytest.fixture()
def client(db, tmp_path, monkeypatch):
    """Return a TestClient whose app uses the in-memory DB."""
    monkeypatch.setattr("backend.config.settings.workspace_dir", tmp_path)
    monkeypatch.setattr("backend.config.settings.site_base_url", _SITE)
    monkeypatch.setattr("backend.config.settings.toc_path", "Contents")
    monkeypatch.setattr("backend.config.settings.markdown_action", "markdown")
    monkeypatch.setattr("backend.config.settings.scrape_delay", 0)
    app = create_app()

    with TestClient(app, raise_server_exceptions=True) as c:
        # Lifespan has run by this point; override its db with our in-memory one.
        c.app.state.db = db
        yield c


def _seed_paragraph(db, index: int, content: str, title: str = "Alpha") -> int:
    with db:
        pid = insert_paragraph(
            db,
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
    rebuild_articles(db)
    return pid


# ---------------------------------------------------------------------------
# /scrape
# ---------------------------------------------------------------------------

class TestScrape:
    def test_init_and_batch(self, client) -> None:
        with respx.mock:
            respx.get(f"{_SITE}/Contents?action=markdown").mock(
                return_value=httpx.Response(200, text=_TOC)
            )
            respx.get(f"{_SITE}/Alpha?action=markdown").mock(
                return_value=httpx.Response(200, text=_ALPHA)
            )
            init = client.post("/scrape/init", json={})
            batch = client.post("/scrape/batch")

        assert init.status_code == 200
        assert init.json()["queued"] == 1

        assert batch.status_code == 200
        body = batch.json()
        assert body["succeeded"] == 1
        assert body["has_more"] is False

        stats = client.get("/scrape/stats").json()
        assert stats["paragraph_count"] == 2
        assert stats["article_count"] == 1
        assert stats["status_counts"] == {"completed": 1}

    def test_init_toc_failure_is_502(self, client) -> None:
        with respx.mock:
            respx.get(f"{_SITE}/Contents?action=markdown").mock(
                return_value=httpx.Response(500)
            )
            resp = client.post("/scrape/init")
        assert resp.status_code == 502

    def test_run_is_scheduled(self, client) -> None:
        with respx.mock:
            respx.get(f"{_SITE}/Contents?action=markdown").mock(
                return_value=httpx.Response(200, text=_TOC)
            )
            respx.get(f"{_SITE}/Alpha?action=markdown").mock(
                return_value=httpx.Response(200, text=_ALPHA)
            )
            resp = client.post("/scrape/run", json={"page_limit": 1})

        assert resp.status_code == 202
        assert resp.json()["scheduled"] is True
        # TestClient runs background tasks before returning.  The run uses its
        # own connection to the workspace database, not the request one.
        conn = get_connection()
        try:
            assert paragraph_count(conn) == 2
        finally:
            conn.close()

    def test_rescrape_unknown_is_404(self, client) -> None:
        resp = client.post("/scrape/rescrape", json={"article_title": "Nope"})
        assert resp.status_code == 404

    def test_rescrape_fetch_failure_is_502(self, client, db) -> None:
        _seed_paragraph(db, 0, "First paragraph.")
        with respx.mock:
            respx.get(f"{_SITE}/Alpha?action=markdown").mock(return_value=httpx.Response(500))
            resp = client.post("/scrape/rescrape", json={"article_title": "Alpha"})
        assert resp.status_code == 502

    def test_rescrape_format_failure_is_422(self, client, db) -> None:
        _seed_paragraph(db, 0, "First paragraph.")
        with respx.mock:
            respx.get(f"{_SITE}/Alpha?action=markdown").mock(
                return_value=httpx.Response(200, text="not an article")
            )
            resp = client.post("/scrape/rescrape", json={"article_title": "Alpha"})
        assert resp.status_code == 422

    def test_rescrape_success(self, client, db) -> None:
        pid = _seed_paragraph(db, 0, "Old text.")
        with respx.mock:
            respx.get(f"{_SITE}/Alpha?action=markdown").mock(
                return_value=httpx.Response(200, text=_ALPHA)
            )
            resp = client.post("/scrape/rescrape", json={"article_title": "Alpha"})

        assert resp.status_code == 200
        assert resp.json()["replaced"] == 1
        assert resp.json()["inserted"] == 1
        assert client.get(f"/paragraphs/{pid}").json()["content"] == "First paragraph."

    def test_progress_listing(self, client, db) -> None:
        queue_descriptor(
            db,
            ArticleDescriptor(
                url=f"{_SITE}/Alpha",
                book_title="B",
                sequence_title="S",
                book_order=0,
                sequence_order=1,
                article_order=1,
            ),
        )
        resp = client.get("/scrape/progress", params={"status": "pending"})
        assert resp.status_code == 200
        assert [r["url"] for r in resp.json()] == [f"{_SITE}/Alpha"]

        assert client.get("/scrape/progress", params={"status": "bogus"}).status_code == 422

    def test_verify(self, client, db) -> None:
        pid = _seed_paragraph(db, 0, "three words here")
        with db:
            db.execute("UPDATE paragraphs SET word_count = 99 WHERE id = ?", (pid,))

        resp = client.post("/scrape/verify", json={"fix": True})
        assert resp.status_code == 200
        assert resp.json()["mismatches"] == [
            {"paragraph_id": pid, "stored": 99, "recomputed": 3}
        ]
        assert client.post("/scrape/verify").json()["mismatches"] == []


# ---------------------------------------------------------------------------
# /articles
# ---------------------------------------------------------------------------

class TestArticles:
    def test_list_and_paragraphs(self, client, db) -> None:
        _seed_paragraph(db, 0, "First.")
        _seed_paragraph(db, 1, "Second.")

        articles = client.get("/articles").json()
        assert [(a["article_title"], a["paragraph_count"]) for a in articles] == [("Alpha", 2)]

        paragraphs = client.get("/articles/Alpha/paragraphs").json()
        assert [p["content"] for p in paragraphs] == ["First.", "Second."]

    def test_unknown_article(self, client) -> None:
        assert client.get("/articles/Nope").status_code == 404
        assert client.get("/articles/Nope/paragraphs").status_code == 404

    def test_rebuild(self, client, db) -> None:
        _seed_paragraph(db, 0, "First.")
        resp = client.post("/articles/rebuild")
        assert resp.status_code == 200
        assert resp.json() == {"article_count": 1}


# ---------------------------------------------------------------------------
# /paragraphs
# ---------------------------------------------------------------------------

class TestParagraphs:
    def test_random_in_range(self, client, db) -> None:
        _seed_paragraph(db, 0, "short")
        pid = _seed_paragraph(db, 1, "a somewhat longer paragraph of words")

        resp = client.get("/paragraphs/random", params={"min_words": 3, "max_words": 10})
        assert resp.status_code == 200
        assert resp.json()["id"] == pid

    def test_random_none_is_404(self, client) -> None:
        assert client.get("/paragraphs/random").status_code == 404

    def test_random_bad_range_is_422(self, client) -> None:
        resp = client.get("/paragraphs/random", params={"min_words": 9, "max_words": 2})
        assert resp.status_code == 422

    def test_get_missing(self, client) -> None:
        assert client.get("/paragraphs/999").status_code == 404

    def test_typing_target(self, client, db) -> None:
        pid = _seed_paragraph(db, 0, "Wait… a **bold** [link](https://x.test).[2]")

        resp = client.get(f"/paragraphs/{pid}/typing")
        assert resp.status_code == 200
        body = resp.json()
        assert body["text"] == "Wait… a bold link."
        assert body["word_boundaries"] == [6, 8, 13, 18]
        assert body["special_characters"][0]["char"] == "…"
        assert body["special_characters"][0]["sequences"] == ["..."]


# ---------------------------------------------------------------------------
# Shared connection
# ---------------------------------------------------------------------------

_SHORT_ALPHA = (
    "# Alpha\n[Home][1]\n\n# Alpha\n\n❦\n\nOnly paragraph left.\n\n[ ][2]\n\n"
    "[1]: https://site/Home\n[2]: https://site/Next\n"
)


class TestSharedConnection:
    def test_failed_store_is_not_committed_by_another_request(
        self, client, db, monkeypatch
    ) -> None:
        for index in range(3):
            _seed_paragraph(db, index, f"paragraph number {index}")

        responses = []
        writer_blocked = []
        writer = threading.Thread(
            target=lambda: responses.append(client.post("/articles/rebuild"))
        )

        def replace_then_crash(conn, paragraph_id, data):
            # Stale indexes are already deleted inside the open transaction.
            writer.start()
            writer.join(timeout=0.5)
            writer_blocked.append(writer.is_alive())
            raise RuntimeError("disk full")

        monkeypatch.setattr(
            "backend.pipeline.orchestrator.replace_paragraph", replace_then_crash
        )

        with respx.mock:
            respx.get(f"{_SITE}/Alpha?action=markdown").mock(
                return_value=httpx.Response(200, text=_SHORT_ALPHA)
            )
            with pytest.raises(RuntimeError):
                client.post("/scrape/rescrape", json={"article_title": "Alpha"})

        writer.join(timeout=5)
        assert writer_blocked == [True]
        assert responses[0].status_code == 200

        indexes = [p.index_in_article for p in list_article_paragraphs(db, "Alpha")]
        assert indexes == [0, 1, 2]
        assert client.get("/articles/Alpha").json()["paragraph_count"] == 3
        assert client.get("/scrape/progress", params={"status": "failed"}).json()[0][
            "error_message"
        ] == "disk full"
