"""Boundary expansion for resolved annotation ranges.

A resolved range covers exactly the matched letters.  Before wrapping it
in a highlight marker it is widened to swallow the formatting hugging it,
so that ``**Republic**`` is highlighted as a unit instead of splitting the
emphasis.  Expansion only absorbs markup that keeps the result
well-nested:

- an opening tag on the left together with its closing tag on the right
- an identical emphasis delimiter run on both sides (``**``, ``_``, ``~~``)
- a self-contained unit on either side (void or self-closing tag, or an
  empty element such as an anchor ``<span id="art_1"></span>``)

Expansion never crosses a line break (even mid-tag) and never reaches past
the neighbouring clean characters, which is where the matched prefix and
suffix context begin.  The one exception is an autolink (``<https://...>``)
the range starts or ends inside: it is taken whole.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from glossator.anchoring.scanner import AUTOLINK, clean_fragment

if TYPE_CHECKING:
    from glossator.anchoring.resolver import MatchCandidate
    from glossator.anchoring.scanner import CleanProjection

# Markdown inline delimiters whose runs pair up around emphasised text
EMPHASIS_CHARS = frozenset("*_~`")

# Inline elements that never have content
VOID_ELEMENTS = frozenset(("img", "wbr"))

# Treated as a line break, never absorbed
BREAK_ELEMENTS = frozenset(("br", "hr"))

# Never restored from the selection text: they would split a tag
_UNRESTORABLE = frozenset("<>")

_TAG = re.compile(r"<(/?)([A-Za-z][A-Za-z0-9:-]*)\b[^<>]*?(/?)>")


@dataclass(frozen=True, slots=True)
class _Unit:
    """A markup unit adjacent to the range.

    kind is "open", "close", "emphasis" or "self" (self-contained).
    """

    kind: str
    name: str
    start: int
    end: int


def _parse_tag(tag: str) -> tuple[str, str] | None:
    """Classify a complete tag as (kind, name), or None when unusable."""
    if "\n" in tag or AUTOLINK.fullmatch(tag):
        return None
    match = _TAG.fullmatch(tag)
    if match is None:
        return None
    closing, name, self_closing = match.groups()
    name = name.lower()
    if name in BREAK_ELEMENTS:
        return None
    if closing:
        return "close", name
    if self_closing or name in VOID_ELEMENTS:
        return "self", name
    return "open", name


def _emphasis_run_left(body: str, pos: int, limit: int) -> _Unit:
    ch = body[pos - 1]
    start = pos - 1
    while start > limit and body[start - 1] == ch:
        start -= 1
    return _Unit("emphasis", body[start:pos], start, pos)


def _emphasis_run_right(body: str, pos: int, limit: int) -> _Unit:
    ch = body[pos]
    end = pos + 1
    while end < limit and body[end] == ch:
        end += 1
    return _Unit("emphasis", body[pos:end], pos, end)


def _left_unit(body: str, pos: int, limit: int) -> _Unit | None:
    """The markup unit ending at ``pos``, or None."""
    if pos <= limit:
        return None
    ch = body[pos - 1]
    if ch in EMPHASIS_CHARS:
        return _emphasis_run_left(body, pos, limit)
    if ch != ">":
        return None

    # Jump to the tag's far delimiter
    tag_start = body.rfind("<", limit, pos - 1)
    if tag_start == -1:
        return None
    parsed = _parse_tag(body[tag_start:pos])
    if parsed is None:
        return None
    kind, name = parsed
    if kind != "close":
        return _Unit(kind, name, tag_start, pos)

    # A closing tag is only absorbable as the end of an empty element
    open_start = body.rfind("<", limit, tag_start)
    if open_start == -1:
        return None
    opener = _parse_tag(body[open_start:tag_start])
    if opener == ("open", name):
        return _Unit("self", name, open_start, pos)
    return None


def _right_unit(body: str, pos: int, limit: int) -> _Unit | None:
    """The markup unit starting at ``pos``, or None."""
    if pos >= limit:
        return None
    ch = body[pos]
    if ch in EMPHASIS_CHARS:
        return _emphasis_run_right(body, pos, limit)
    if ch != "<":
        return None

    tag_end = body.find(">", pos, limit)
    if tag_end == -1:
        return None
    parsed = _parse_tag(body[pos : tag_end + 1])
    if parsed is None:
        return None
    kind, name = parsed
    if kind != "open":
        return _Unit(kind, name, pos, tag_end + 1)

    # An opening tag is only absorbable as the start of an empty element
    closer = f"</{name}>"
    if body[tag_end + 1 : tag_end + 1 + len(closer)].lower() == closer:
        end = tag_end + 1 + len(closer)
        if end <= limit:
            return _Unit("self", name, pos, end)
    return None


def _pairs(body: str, left: _Unit, right: _Unit) -> bool:
    if left.kind == "emphasis" and right.kind == "emphasis":
        # The left run must open and the right run close: a run touching
        # neighbouring text belongs to that text's emphasis
        opens = left.start == 0 or not body[left.start - 1].isalnum()
        closes = right.end == len(body) or not body[right.end].isalnum()
        return left.name == right.name and opens and closes
    return left.kind == "open" and right.kind == "close" and left.name == right.name


def absorb_markup(
    body: str,
    start: int,
    end: int,
    left_limit: int,
    right_limit: int,
) -> tuple[int, int]:
    """Widen ``[start, end)`` over adjacent well-nested markup.

    Args:
        body: The raw formatted body.
        start: Range start (inclusive).
        end: Range end (exclusive).
        left_limit: Lowest index the range may start at.
        right_limit: Highest index the range may end at.

    Returns:
        The widened ``(start, end)``.
    """
    while True:
        left = _left_unit(body, start, left_limit)
        if left is not None and left.kind == "self":
            start = left.start
            continue
        right = _right_unit(body, end, right_limit)
        if right is not None and right.kind == "self":
            end = right.end
            continue
        if left is not None and right is not None and _pairs(body, left, right):
            start, end = left.start, right.end
            continue
        return start, end


def _markup_units(text: str) -> list[_Unit]:
    """Tags and emphasis delimiter runs of ``text``, in order."""
    units: list[_Unit] = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch in EMPHASIS_CHARS:
            unit = _emphasis_run_right(text, pos, len(text))
            units.append(unit)
            pos = unit.end
            continue
        if ch == "<":
            autolink = AUTOLINK.match(text, pos)
            if autolink is not None:
                pos = autolink.end()
                continue
            match = _TAG.match(text, pos)
            parsed = _parse_tag(match.group(0)) if match else None
            if match is not None and parsed is not None:
                units.append(_Unit(parsed[0], parsed[1], pos, match.end()))
                pos = match.end()
                continue
        pos += 1
    return units


def _opener_position(
    stack: list[int], units: list[_Unit], unit: _Unit
) -> int | None:
    wanted = "open" if unit.kind == "close" else "emphasis"
    for pos in range(len(stack) - 1, -1, -1):
        candidate = units[stack[pos]]
        if candidate.kind == wanted and candidate.name == unit.name:
            return pos
    return None


def _unbalanced_units(text: str, units: list[_Unit]) -> set[int]:
    """Indices of units whose partner is missing from ``text``."""
    unbalanced: set[int] = set()
    pairs: list[tuple[int, int]] = []
    stack: list[int] = []
    for idx, unit in enumerate(units):
        if unit.kind == "self":
            continue
        if unit.kind == "open":
            stack.append(idx)
            continue
        position = None
        if unit.kind == "close" or (
            unit.start > 0 and not text[unit.start - 1].isspace()
        ):
            position = _opener_position(stack, units, unit)
        if position is None:
            can_open = unit.kind == "emphasis" and (
                unit.end < len(text) and not text[unit.end].isspace()
            )
            if can_open:
                stack.append(idx)
            else:
                unbalanced.add(idx)
            continue
        # Units opened inside the pair but never closed cross it
        unbalanced.update(stack[position + 1 :])
        pairs.append((stack[position], idx))
        del stack[position:]
    unbalanced.update(stack)

    # Splitting at a unit breaks every pair around it
    changed = True
    while changed:
        changed = False
        for opener, closer in pairs:
            if opener in unbalanced:
                continue
            if any(opener < idx < closer for idx in unbalanced):
                unbalanced.update((opener, closer))
                changed = True
    return unbalanced


def balanced_pieces(text: str) -> list[tuple[str, bool]]:
    """Split ``text`` at markup units that are not closed within it.

    A range that starts or ends inside emphasis or an element cannot be
    wrapped whole without misnesting.  The unclosed units are cut out so
    each remaining piece can be wrapped on its own.

    Returns:
        ``(chunk, balanced)`` pairs covering ``text`` in order.  Unbalanced
        chunks are single tags or delimiter runs.
    """
    units = _markup_units(text)
    unbalanced = _unbalanced_units(text, units)
    pieces: list[tuple[str, bool]] = []
    cursor = 0
    for idx in sorted(unbalanced):
        unit = units[idx]
        if unit.start > cursor:
            pieces.append((text[cursor : unit.start], True))
        pieces.append((text[unit.start : unit.end], False))
        cursor = unit.end
    if cursor < len(text):
        pieces.append((text[cursor:], True))
    return pieces


def _edge_punctuation(selection_text: str) -> tuple[str, str]:
    """Leading and trailing characters the clean rule drops."""
    text = selection_text.strip()
    lead_end = 0
    while lead_end < len(text) and not clean_fragment(text[lead_end]):
        lead_end += 1
    if lead_end == len(text):
        return "", ""
    trail_start = len(text)
    while trail_start > lead_end and not clean_fragment(text[trail_start - 1]):
        trail_start -= 1
    return text[:lead_end], text[trail_start:]


def restore_edge_punctuation(
    body: str, start: int, end: int, selection_text: str
) -> tuple[int, int]:
    """Re-include punctuation that edged the captured selection.

    Walks outward matching the selection's leading punctuation (right to
    left) and trailing punctuation (left to right) against the raw body.
    Whitespace in the selection matches a run of spaces or tabs.  Stops at
    the first mismatch or line break.
    """
    lead, trail = _edge_punctuation(selection_text)

    for ch in reversed(lead):
        if ch.isspace():
            while start > 0 and body[start - 1] in " \t":
                start -= 1
            continue
        if ch in _UNRESTORABLE or start == 0 or body[start - 1] != ch:
            break
        start -= 1

    for ch in trail:
        if ch.isspace():
            while end < len(body) and body[end] in " \t":
                end += 1
            continue
        if ch in _UNRESTORABLE or end >= len(body) or body[end] != ch:
            break
        end += 1

    return start, end


def _autolink_around(body: str, pos: int) -> tuple[int, int] | None:
    """Span of the autolink strictly containing ``pos``, or None."""
    line_start = body.rfind("\n", 0, pos) + 1
    opener = body.rfind("<", line_start, pos)
    if opener == -1:
        return None
    match = AUTOLINK.match(body, opener)
    if match is None or match.end() <= pos:
        return None
    return opener, match.end()


def _widen_to_autolinks(body: str, start: int, end: int) -> tuple[int, int]:
    """Widen a range ending inside an autolink to cover all of it."""
    around = _autolink_around(body, start)
    if around is not None:
        start = around[0]
    around = _autolink_around(body, end)
    if around is not None:
        end = around[1]
    return start, end


def expand_range(
    body: str,
    candidate: MatchCandidate,
    projection: CleanProjection,
    selection_text: str = "",
) -> tuple[int, int]:
    """Widen a resolved candidate to its final raw ``[start, end)``.

    Args:
        body: The raw formatted body the projection was built from.
        candidate: The resolver's winning candidate.
        projection: Clean projection of ``body``.
        selection_text: The captured selection text, for restoring edge
            punctuation.  Empty skips restoration.

    Returns:
        The expanded ``(start, end)`` raw range.
    """
    clean_to_raw = projection.clean_to_raw
    if candidate.clean_start > 0:
        left_limit = clean_to_raw[candidate.clean_start - 1] + 1
    else:
        left_limit = 0
    if candidate.clean_end < len(clean_to_raw):
        right_limit = clean_to_raw[candidate.clean_end]
    else:
        right_limit = len(body)

    start, end = absorb_markup(
        body, candidate.raw_start, candidate.raw_end, left_limit, right_limit
    )
    if selection_text:
        start, end = restore_edge_punctuation(body, start, end, selection_text)
    return _widen_to_autolinks(body, start, end)
