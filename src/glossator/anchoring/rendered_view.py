"""Rendered view of a formatted body: visible text, anchors and headings.

The body is rendered with markdown-it (HTML passthrough, so the embedded
``<span id="...">`` anchors survive) and the resulting DOM is walked the
way a browser selection reads it.  The visible text is the coordinate
space for selections: a client reports ``start``/``end`` offsets into it.

Walk rules:
- whitespace runs (including ``\\u00a0``) collapse to a single space
- whitespace-only text nodes between blocks are skipped
- ``<br>`` becomes ``\\n``; every block element ends with ``\\n``
- script / style / noscript / template are skipped entirely
"""

from __future__ import annotations

import bisect
import logging
import re
from dataclasses import dataclass
from typing import Any

from markdown_it import MarkdownIt
from selectolax.lexbor import LexborHTMLParser

from glossator.anchoring.scanner import BLOCK_TAGS

logger = logging.getLogger(__name__)

_STRIP_TAGS = frozenset(("script", "style", "noscript", "template"))

# Parents whose whitespace-only children are indentation, not content
_CONTAINER_TAGS = (
    BLOCK_TAGS - {"p", "h1", "h2", "h3", "h4", "h5", "h6", "pre", "li", "td", "th"}
) | {"body", "html"}

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")

_WHITESPACE_RUN = re.compile(r"[\s\u00a0]+")

_markdown = MarkdownIt("commonmark", {"html": True})


@dataclass(frozen=True, slots=True)
class TocEntry:
    """One heading of the table of contents."""

    level: int
    text: str
    anchor_id: str | None


@dataclass(slots=True)
class _TextSegment:
    """A text node's contribution to the visible character stream."""

    char_start: int
    char_end: int
    node: Any


def render_markdown(body: str) -> str:
    """Render a formatted body to HTML."""
    return _markdown.render(body)


class RenderedView:
    """Visible text of a rendered body plus its structural anchors.

    Build with :meth:`from_body`.  Instances are immutable after
    construction and hold the parsed tree for id lookups.
    """

    def __init__(self, tree: LexborHTMLParser) -> None:
        self._tree = tree
        self._root = tree.body if tree.body is not None else tree.root
        chars: list[str] = []
        self._segments: list[_TextSegment] = []
        if self._root is not None:
            child = self._root.child
            while child is not None:
                self._walk(child, chars)
                child = child.next
        self.text = "".join(chars)
        self._starts = [seg.char_start for seg in self._segments]

    @classmethod
    def from_body(cls, body: str) -> RenderedView:
        """Render ``body`` and build its view."""
        return cls(LexborHTMLParser(render_markdown(body)))

    @classmethod
    def from_html(cls, html: str) -> RenderedView:
        """Build a view over already-rendered HTML."""
        return cls(LexborHTMLParser(html))

    # ------------------------------------------------------------------
    # DOM walk
    # ------------------------------------------------------------------

    def _walk(self, node: Any, chars: list[str]) -> None:
        tag = node.tag

        # Text node; selectolax uses "-text" as the tag
        if tag == "-text":
            text = node.text_content
            if not text:
                return
            parent = node.parent
            if (
                parent is not None
                and parent.tag in _CONTAINER_TAGS
                and _WHITESPACE_RUN.fullmatch(text)
            ):
                return
            collapsed = _WHITESPACE_RUN.sub(" ", text)
            if not chars or chars[-1] in ("\n", " "):
                collapsed = collapsed.lstrip(" ")
            if not collapsed:
                return
            start = len(chars)
            chars.extend(collapsed)
            self._segments.append(_TextSegment(start, len(chars), node))
            return

        if tag.startswith("-") or tag in _STRIP_TAGS:
            return

        if tag == "br":
            chars.append("\n")
            return

        child = node.child
        while child is not None:
            self._walk(child, chars)
            child = child.next

        if tag in BLOCK_TAGS and chars and chars[-1] != "\n":
            chars.append("\n")

    # ------------------------------------------------------------------
    # Anchor lookup
    # ------------------------------------------------------------------

    def _segment_at(self, offset: int) -> _TextSegment | None:
        """Text segment containing ``offset``, else the next one, else the last."""
        if not self._segments:
            return None
        idx = bisect.bisect_right(self._starts, offset) - 1
        if idx >= 0 and offset < self._segments[idx].char_end:
            return self._segments[idx]
        if idx + 1 < len(self._segments):
            return self._segments[idx + 1]
        return self._segments[-1]

    def first_anchor_id(self) -> str | None:
        """Identifier of the document's first identified element."""
        if self._root is None:
            return None
        for node in self._root.css("[id]"):
            anchor = node.attributes.get("id")
            if anchor:
                return anchor
        return None

    def location_id_at(self, offset: int) -> str | None:
        """Resolve the structural anchor governing a visible offset.

        Walks upward to the nearest ancestor carrying an ``id``; failing
        that, scans preceding sibling blocks nearest-first; failing that,
        falls back to the document's first anchor.  ``None`` is legal.
        """
        segment = self._segment_at(offset)
        if segment is not None:
            found = _nearest_id(segment.node)
            if found:
                return found
        return self.first_anchor_id()

    def table_of_contents(self) -> list[TocEntry]:
        """Ordered headings with the anchor each one belongs to."""
        if self._root is None:
            return []
        entries: list[TocEntry] = []
        for node in self._root.css(", ".join(_HEADING_TAGS)):
            text = _WHITESPACE_RUN.sub(" ", node.text() or "").strip()
            if not text:
                continue
            entries.append(
                TocEntry(
                    level=int(node.tag[1]),
                    text=text,
                    anchor_id=_nearest_id(node),
                )
            )
        logger.debug("Table of contents: %d headings", len(entries))
        return entries


def _own_id(node: Any) -> str | None:
    if node.tag.startswith("-"):
        return None
    return node.attributes.get("id") or None


def _last_id_within(node: Any) -> str | None:
    """Last identifier in document order within ``node`` (itself included)."""
    if node.tag.startswith("-"):
        return None
    for descendant in reversed(node.css("[id]")):
        anchor = descendant.attributes.get("id")
        if anchor:
            return anchor
    return _own_id(node)


def _nearest_id(node: Any) -> str | None:
    """Nearest identifier at or before ``node``, innermost level first.

    Checks the node and its ancestors, then at each level the preceding
    siblings from nearest to farthest.
    """
    current = node
    while current is not None and current.tag not in ("body", "html"):
        found = _own_id(current)
        if found:
            return found
        current = current.parent

    current = node
    while current is not None and current.tag not in ("body", "html"):
        sibling = current.prev
        while sibling is not None:
            found = _last_id_within(sibling)
            if found:
                return found
            sibling = sibling.prev
        current = current.parent
    return None
