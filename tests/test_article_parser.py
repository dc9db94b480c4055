"""Tests for article markdown parsing."""

from __future__ import annotations

import pytest

from backend.errors import FormatError, FormatErrorKind
from backend.scraper.article import parse_article
from backend.scraper.references import collect_references, substitute_links

_ARTICLE = """\
# The Simple Truth
(A Parable)
[Home][1] [Source][2] [Markdown][3] [Talk][4]

# The Simple Truth
(A Parable)

❦

I remember this paragraph, which
spans two lines.

A second one with a [reference link][5] and a footnote.[6]

```
code  block

kept whole
```

Last paragraph with an [anchor][7].

[ ][8]

Trailing content after the marker.

[1]: https://site/Home
[2]: https://site/Source
[3]: https://site/The-Simple-Truth?action=markdown
[4]: https://site/Talk
[5]: https://elsewhere.test/page
[6]: https://site/notes#6
[7]: #fn1
[8]: https://site/Next
"""


class TestParseArticle:
    def test_title_includes_continuation(self) -> None:
        assert parse_article(_ARTICLE).title == "The Simple Truth (A Parable)"

    def test_paragraphs(self) -> None:
        parsed = parse_article(_ARTICLE)
        assert parsed.end_marker_found is True
        assert parsed.paragraphs[0] == "I remember this paragraph, which spans two lines."
        assert parsed.paragraphs[1] == (
            "A second one with a [reference link](https://elsewhere.test/page) "
            "and a footnote.[6](https://site/notes#6)"
        )
        assert parsed.paragraphs[-1] == "Last paragraph with an anchor."
        assert len(parsed.paragraphs) == 4

    def test_fenced_block_is_one_paragraph(self) -> None:
        parsed = parse_article(_ARTICLE)
        assert parsed.paragraphs[2].startswith("```")
        assert "kept whole" in parsed.paragraphs[2]

    def test_content_after_end_marker_is_ignored(self) -> None:
        parsed = parse_article(_ARTICLE)
        assert all("Trailing" not in p for p in parsed.paragraphs)

    def test_is_deterministic(self) -> None:
        assert parse_article(_ARTICLE) == parse_article(_ARTICLE)

    def test_missing_end_marker_drops_trailing_block(self) -> None:
        markdown = "# T\n\n# T\n\n❦\n\nFirst.\n\nSecond, never terminated."
        parsed = parse_article(markdown)
        assert parsed.end_marker_found is False
        assert parsed.paragraphs == ["First."]


class TestFormatErrors:
    def test_no_title(self) -> None:
        with pytest.raises(FormatError) as exc_info:
            parse_article("no heading here\n\nat all")
        assert exc_info.value.kind is FormatErrorKind.MISSING_TITLE

    def test_missing_second_title(self) -> None:
        with pytest.raises(FormatError) as exc_info:
            parse_article("# Title\n[Home][1]\n\nBody text straight away.\n")
        err = exc_info.value
        assert err.kind is FormatErrorKind.MISSING_SECOND_TITLE
        assert err.line == 4
        assert err.found == "Body text straight away."

    def test_missing_separator(self) -> None:
        with pytest.raises(FormatError) as exc_info:
            parse_article("# Title\n\n# Title\n\nNo glyph.\n")
        err = exc_info.value
        assert err.kind is FormatErrorKind.MISSING_SEPARATOR
        assert "❦" in str(err)

    def test_separator_missing_at_eof(self) -> None:
        with pytest.raises(FormatError) as exc_info:
            parse_article("# Title\n\n# Title\n")
        assert exc_info.value.found == "EOF"


class TestReferences:
    def test_collects_anchors_and_urls(self) -> None:
        refs = collect_references("[1]: https://a.test/x\n[2]: #fn2\nnot a ref\n")
        assert refs == {"1": "https://a.test/x", "2": "#fn2"}

    def test_prefix_filters_other_sites(self) -> None:
        refs = collect_references(
            "[1]: https://site/a\n[2]: https://other/b\n", url_prefix="https://site"
        )
        assert refs == {"1": "https://site/a"}

    def test_unknown_reference_keeps_text(self) -> None:
        assert substitute_links("see [this][9]", {}) == "see this"

    def test_bare_internal_footnote_is_kept(self) -> None:
        assert substitute_links("claim [2]", {"2": "#fn2"}) == "claim [2]"
