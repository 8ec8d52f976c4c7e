"""Marker injection and the per-render anchoring pass.

``render_annotated_body`` is the entry point used on every render: it
projects the body once, resolves and expands every annotation, then
injects highlight markers back-to-front so earlier offsets stay valid.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from glossator.anchoring.boundaries import balanced_pieces, expand_range
from glossator.anchoring.marker_constants import (
    AFFORDANCE_TEMPLATE,
    HIGHLIGHT_CLOSE,
    HIGHLIGHT_OPEN_TEMPLATE,
)
from glossator.anchoring.resolver import resolve_anchor
from glossator.anchoring.scanner import clean_fragment, project_body

if TYPE_CHECKING:
    from glossator.anchoring.fingerprint import AnchorFingerprint

logger = logging.getLogger(__name__)

# Markdown block prefix kept outside the marker: heading hashes, bullets,
# ordered-list numbers and blockquote markers, possibly nested
_BLOCK_PREFIX = re.compile(
    r"^[ \t]*(?:#{1,6}[ \t]+|[-*+][ \t]+|\d+[.)][ \t]+|>[ \t]*)*"
)


@dataclass(frozen=True, slots=True)
class PlacedAnnotation:
    """An expanded raw range ready for injection."""

    annotation_id: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Outcome of one anchoring pass.

    Attributes:
        body: The body with markers injected.
        placed: Ranges that were placed, in document order.
        stale: Ids of annotations whose text no longer occurs.
    """

    body: str
    placed: tuple[PlacedAnnotation, ...]
    stale: tuple[str, ...]


def _has_visible_text(text: str) -> bool:
    return bool(clean_fragment(text))


@dataclass(slots=True)
class _LineParts:
    """A line split into block prefix, markable pieces and trailing space."""

    head: str
    pieces: list[tuple[str, bool]]
    tail: str

    @property
    def markable(self) -> list[int]:
        return [
            idx
            for idx, (chunk, balanced) in enumerate(self.pieces)
            if balanced and _has_visible_text(chunk)
        ]


def _split_line(line: str, *, strip_prefix: bool) -> _LineParts:
    head_len = 0
    if strip_prefix:
        match = _BLOCK_PREFIX.match(line)
        head_len = match.end() if match else 0
    content = line[head_len:]
    core = content.rstrip()
    return _LineParts(line[:head_len], balanced_pieces(core), content[len(core) :])


def wrap_segment(segment: str, annotation_id: str, *, at_line_start: bool) -> str:
    """Wrap each visible line of ``segment`` in highlight markers.

    Emphasis runs and tags that open or close outside the segment stay
    outside the markers, so a line may get several markers.  The affordance
    follows the last marker.

    Args:
        segment: Raw text of the range.
        annotation_id: Id written into the marker attributes.
        at_line_start: Whether the segment begins at the start of a line,
            in which case its Markdown block prefix stays outside.

    Returns:
        The replacement text.  Unchanged when no line has visible text.
    """
    raw_lines = segment.split("\n")
    lines = [
        _split_line(line, strip_prefix=idx > 0 or at_line_start)
        for idx, line in enumerate(raw_lines)
    ]
    visible = [idx for idx, parts in enumerate(lines) if parts.markable]
    if not visible:
        return segment

    escaped = html.escape(annotation_id, quote=True)
    opener = HIGHLIGHT_OPEN_TEMPLATE.format(escaped)
    affordance = AFFORDANCE_TEMPLATE.format(escaped)
    last_line = visible[-1]

    wrapped: list[str] = []
    for idx, (raw, parts) in enumerate(zip(raw_lines, lines, strict=True)):
        markable = parts.markable
        if not markable:
            wrapped.append(raw)
            continue
        out = [parts.head]
        for piece_idx, (chunk, _balanced) in enumerate(parts.pieces):
            if piece_idx not in markable:
                out.append(chunk)
                continue
            out.append(f"{opener}{chunk}{HIGHLIGHT_CLOSE}")
            if idx == last_line and piece_idx == markable[-1]:
                out.append(affordance)
        out.append(parts.tail)
        wrapped.append("".join(out))
    return "\n".join(wrapped)


def inject_markers(body: str, placed: Iterable[PlacedAnnotation]) -> str:
    """Insert highlight markers for already-expanded ranges.

    Ranges are applied by descending start.  A range reaching into one
    applied before it is clipped at that range's start; a range left empty
    by clipping is skipped.

    Args:
        body: The raw formatted body.
        placed: Expanded raw ranges.

    Returns:
        The body with markers injected.
    """
    ordered = sorted(placed, key=lambda p: (p.start, p.end), reverse=True)
    result = body
    boundary = len(body)
    for item in ordered:
        if item.start < 0 or item.end > len(body):
            logger.warning(
                "Range %d..%d for annotation %s outside body of %d chars",
                item.start,
                item.end,
                item.annotation_id,
                len(body),
            )
            continue
        end = min(item.end, boundary)
        if item.start >= end:
            logger.debug(
                "Annotation %s fully covered by a later range, skipped",
                item.annotation_id,
            )
            continue
        at_line_start = item.start == 0 or body[item.start - 1] == "\n"
        replacement = wrap_segment(
            result[item.start : end], item.annotation_id, at_line_start=at_line_start
        )
        result = result[: item.start] + replacement + result[end:]
        boundary = item.start
    return result


def _identify(annotation: Any) -> tuple[str, AnchorFingerprint]:
    """Accept ``(id, fingerprint)`` pairs or objects with ``id``/``fingerprint``."""
    if isinstance(annotation, tuple):
        annotation_id, fingerprint = annotation
    else:
        annotation_id, fingerprint = annotation.id, annotation.fingerprint
    return str(annotation_id), fingerprint


def render_annotated_body(body: str, annotations: Iterable[Any]) -> RenderResult:
    """Resolve, expand and inject markers for a document's annotations.

    Never raises for data problems: stale annotations are listed in the
    result, and an annotation that fails unexpectedly is logged and left
    out.  In the worst case the returned body equals the input.

    Args:
        body: The current raw formatted body.
        annotations: ``(id, fingerprint)`` pairs, or objects exposing
            ``id`` and ``fingerprint`` (such as stored annotations).

    Returns:
        The rendered body with placement details.
    """
    projection = project_body(body)
    placed: list[PlacedAnnotation] = []
    stale: list[str] = []

    for annotation in annotations:
        try:
            annotation_id, fingerprint = _identify(annotation)
        except (AttributeError, TypeError, ValueError):
            logger.exception("Unusable annotation record %r", annotation)
            continue
        try:
            candidate = resolve_anchor(fingerprint, projection)
            if candidate is None:
                logger.debug("Annotation %s is stale, omitted", annotation_id)
                stale.append(annotation_id)
                continue
            start, end = expand_range(
                body, candidate, projection, fingerprint.selection_text
            )
        except Exception:
            logger.exception("Failed to place annotation %s", annotation_id)
            continue
        placed.append(PlacedAnnotation(annotation_id, start, end))

    try:
        rendered = inject_markers(body, placed)
    except Exception:
        logger.exception("Marker injection failed, showing body unannotated")
        rendered = body

    placed.sort(key=lambda p: (p.start, p.end))
    logger.info(
        "Rendered body (%d chars): %d placed, %d stale",
        len(body),
        len(placed),
        len(stale),
    )
    return RenderResult(body=rendered, placed=tuple(placed), stale=tuple(stale))
