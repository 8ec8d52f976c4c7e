"""Structural text scanner: clean projection of a formatted body.

Projects a Markdown/HTML body into a lowercase, alphanumeric-only shadow
text together with an index map back to raw positions.  Matching runs on
the shadow text so that formatting noise (tags, emphasis delimiters,
punctuation, link destinations) never affects whether a selection is found,
while the index map keeps an exact route back into the raw body.
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import html as html_module
import re
import unicodedata
from dataclasses import dataclass

TAG_OPEN = "<"
TAG_CLOSE = ">"

# HTML only opens a tag when "<" is followed by a name, "/" or "!".
# "art. 3 < 5" stays plain text, exactly as the renderer treats it.
_TAG_START = re.compile(r"<[A-Za-z/!?]")
_TAG_NAME = re.compile(r"</?([A-Za-z][A-Za-z0-9]*)")

# Autolinks render their destination as visible text
AUTOLINK = re.compile(
    r"<(?:[A-Za-z][A-Za-z0-9+.-]{1,31}:[^\s<>]*"
    r"|[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9][A-Za-z0-9.-]*)>"
)

# Elements that end a line of visible text
BLOCK_TAGS = frozenset(
    (
        "p",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "pre",
        "blockquote",
        "hr",
        "table",
        "thead",
        "tbody",
        "tr",
        "td",
        "th",
        "ul",
        "ol",
        "li",
        "dl",
        "dt",
        "dd",
        "div",
        "section",
        "article",
        "header",
        "footer",
        "figure",
        "figcaption",
    )
)

# Tags that separate words in the rendered text
_BREAK_TAGS = BLOCK_TAGS | {"br"}

# Named or numeric character reference
_ENTITY = re.compile(
    r"&(?:#[0-9]{1,7}|#[xX][0-9a-fA-F]{1,6}|[A-Za-z][A-Za-z0-9]{1,31});"
)


@dataclass(frozen=True, slots=True)
class CleanProjection:
    """Clean shadow of a formatted body.

    Attributes:
        clean_text: Lowercase letters, numbers and single spaces.
        clean_to_raw: Raw index of every clean character.  Same length as
            ``clean_text`` and strictly increasing.
    """

    clean_text: str
    clean_to_raw: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.clean_text)


def _fold_char(ch: str) -> str | None:
    """Return the clean form of a single raw character, or None to drop it."""
    folded = unicodedata.normalize("NFKC", ch)
    if len(folded) != 1:
        folded = ch
    if not folded.isalnum():
        return None
    lowered = folded.lower()
    return lowered if len(lowered) == 1 else folded


def _skip_link_destination(body: str, i: int) -> int | None:
    """Return the index after a ``](...)`` destination starting at ``i``.

    Only single-line destinations count; anything else is left to the
    character rules.
    """
    if not body.startswith("](", i):
        return None
    close = body.find(")", i + 2)
    if close == -1:
        return None
    newline = body.find("\n", i + 2, close)
    if newline != -1:
        return None
    return close + 1


def project_body(body: str) -> CleanProjection:
    """Build the clean projection of a formatted body.

    Characters inside ``<...>`` tags are dropped; a line break or block
    tag counts as whitespace, mapped to its ``<``.  Autolinks are text.
    Outside tags, letters and numbers are folded to lowercase, whitespace
    runs collapse to a single space, and everything else is dropped.  An
    unterminated tag suppresses the rest of the body: the affected text is
    unmatchable, never mismapped.

    Args:
        body: The formatted body (Markdown with embedded HTML).

    Returns:
        CleanProjection with ``clean_to_raw`` pointing into ``body``.
    """
    chars: list[str] = []
    raw_index: list[int] = []
    in_tag = False
    tag_start = 0
    prev_kept = False
    i = 0
    n = len(body)

    while i < n:
        ch = body[i]

        if in_tag:
            if ch == TAG_CLOSE:
                in_tag = False
                name = _TAG_NAME.match(body, tag_start)
                breaks = name is not None and name.group(1).lower() in _BREAK_TAGS
                if breaks and chars and chars[-1] != " ":
                    chars.append(" ")
                    raw_index.append(tag_start)
            i += 1
            continue

        if (
            ch == TAG_OPEN
            and _TAG_START.match(body, i)
            and not AUTOLINK.match(body, i)
        ):
            in_tag = True
            tag_start = i
            prev_kept = False
            i += 1
            continue

        if ch == "]":
            after = _skip_link_destination(body, i)
            if after is not None:
                prev_kept = False
                i = after
                continue

        source = i
        step = 1
        if ch == "&":
            match = _ENTITY.match(body, i)
            if match:
                decoded = html_module.unescape(match.group(0))
                if decoded != match.group(0) and len(decoded) == 1:
                    ch = decoded
                    step = match.end() - i

        if ch.isspace():
            if not chars or chars[-1] != " ":
                chars.append(" ")
                raw_index.append(source)
            prev_kept = False
        elif unicodedata.category(ch).startswith("M"):
            # Combining mark: compose into the character it follows
            if prev_kept:
                composed = unicodedata.normalize("NFC", chars[-1] + ch)
                if len(composed) == 1:
                    chars[-1] = composed
        else:
            clean = _fold_char(ch)
            if clean is None:
                prev_kept = False
            else:
                chars.append(clean)
                raw_index.append(source)
                prev_kept = True

        i += step

    return CleanProjection(clean_text="".join(chars), clean_to_raw=tuple(raw_index))


def clean_fragment(text: str | None) -> str:
    """Clean-normalize a fingerprint fragment with the body rule.

    Surrounding whitespace is stripped.  ``None`` is treated as empty.
    """
    if not text:
        return ""
    return project_body(text).clean_text.strip()
