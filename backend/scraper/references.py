"""Reference-style link handling for the wiki markdown dialect.

Pages list their link targets at the bottom as numbered definitions::

    [7]: https://www.readthesequences.com/What-Do-I-Mean-By-Rationality
    [12]: #fn3

Body text refers to them as ``[text][7]`` or bare footnotes ``[12]``.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

_ARTICLE_REF_RE = re.compile(r"^\s*\[(\d+)\]:\s+([#\w][\w:/.\-?=&#%~+]*)", re.ASCII)
_REF_LINK_RE = re.compile(r"\[([^\]]+)\]\[(\d+)\]")
_BARE_FOOTNOTE_RE = re.compile(r"\[(\d+)\](?!\()")


def collect_references(markdown: str, url_prefix: Optional[str] = None) -> Dict[str, str]:
    """Map reference numbers to their targets.

    Args:
        markdown: Full page markdown.
        url_prefix: When given, only absolute URLs starting with this prefix
            are accepted (the table of contents only links into its own site).
            Otherwise internal anchors (``#…``) and any URL are kept.
    """
    if url_prefix is not None:
        pattern = re.compile(r"^\s*\[(\d+)\]:\s+(" + re.escape(url_prefix) + r"/\S+)")
    else:
        pattern = _ARTICLE_REF_RE

    refs: Dict[str, str] = {}
    for line in markdown.split("\n"):
        match = pattern.match(line)
        if match:
            refs[match.group(1)] = match.group(2)
    return refs


def _is_external(target: Optional[str]) -> bool:
    return bool(target) and not target.startswith("#")  # type: ignore[union-attr]


def substitute_links(text: str, refs: Dict[str, str]) -> str:
    """Rewrite reference links in *text* against *refs*.

    ``[text][N]`` becomes ``[text](url)`` for external targets and plain
    ``text`` for internal anchors or unknown numbers.  A bare ``[N]`` pointing
    at an external URL becomes ``[N](url)``; other bare markers are kept as-is
    (the typing target drops them later).
    """

    def _ref_link(match: re.Match[str]) -> str:
        link_text, ref = match.group(1), match.group(2)
        target = refs.get(ref)
        if _is_external(target):
            return f"[{link_text}]({target})"
        return link_text

    def _footnote(match: re.Match[str]) -> str:
        ref = match.group(1)
        target = refs.get(ref)
        if _is_external(target):
            return f"[{ref}]({target})"
        return match.group(0)

    text = _REF_LINK_RE.sub(_ref_link, text)
    return _BARE_FOOTNOTE_RE.sub(_footnote, text)
