"""Context fingerprint capture for a completed selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from glossator.anchoring.fingerprint import CONTEXT_LENGTH, AnchorFingerprint

if TYPE_CHECKING:
    from glossator.anchoring.rendered_view import RenderedView

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CapturedSelection:
    """A fingerprint plus where the note editor should appear.

    Attributes:
        fingerprint: The position-independent description to persist.
        anchor_offset: Visible offset the floating editor attaches to
            (end of the trimmed selection).
        selection_offset: Visible start offset at capture time.  Stored
            for reference only; relocation never uses it.
    """

    fingerprint: AnchorFingerprint
    anchor_offset: int
    selection_offset: int


def capture_selection(
    view: RenderedView,
    start: int,
    end: int,
    *,
    context_length: int = CONTEXT_LENGTH,
) -> CapturedSelection | None:
    """Derive a fingerprint from a selection in a rendered view.

    Args:
        view: The rendered view the selection was made in.
        start: Selection start offset in ``view.text``.
        end: Selection end offset in ``view.text`` (exclusive).
        context_length: Maximum characters of prefix/suffix context.

    Returns:
        The captured selection, or None when the trimmed selection is
        empty or the offsets are unusable.
    """
    text = view.text
    if start < 0 or end < start:
        logger.debug("Ignoring selection with bad offsets %d..%d", start, end)
        return None
    end = min(end, len(text))
    selected = text[start:end]

    # Move the bounds inward past surrounding whitespace
    stripped = selected.strip()
    if not stripped:
        return None
    start += len(selected) - len(selected.lstrip())
    end = start + len(stripped)

    prefix = text[max(0, start - context_length) : start]
    suffix = text[end : end + context_length]

    fingerprint = AnchorFingerprint(
        selection_text=stripped,
        prefix_context=prefix,
        suffix_context=suffix,
        location_id=view.location_id_at(start),
    )
    logger.debug(
        "Captured selection %r at %d..%d (location=%s)",
        stripped[:40],
        start,
        end,
        fingerprint.location_id,
    )
    return CapturedSelection(
        fingerprint=fingerprint, anchor_offset=end, selection_offset=start
    )
