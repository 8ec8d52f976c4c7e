"""Anchor resolver: relocate a fingerprint inside a (possibly changed) body.

Every occurrence of the clean selection text is scored by how well the
clean text around it agrees with the fingerprint's context, and the best
one is mapped back to raw indices.  The score is a greedy best-of-N:
candidates are only ever compared within one document, so no global
normalisation is needed.

Scoring per side (prefix and suffix are independent and additive):
- exact: the adjacent context ends (prefix) / starts (suffix) with the
  fingerprint's clean context -> ``EXACT_CONTEXT_SCORE``
- partial: the bounded context window merely contains it
  -> ``PARTIAL_CONTEXT_SCORE``
- otherwise, or when the fingerprint has no context on that side -> 0
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from glossator.anchoring.scanner import clean_fragment

if TYPE_CHECKING:
    from glossator.anchoring.fingerprint import AnchorFingerprint
    from glossator.anchoring.scanner import CleanProjection

logger = logging.getLogger(__name__)

EXACT_CONTEXT_SCORE = 20
PARTIAL_CONTEXT_SCORE = 5
NO_MATCH_SCORE = -1


@dataclass(frozen=True, slots=True)
class MatchCandidate:
    """A scored occurrence of the selection text.

    Attributes:
        raw_start: Raw index of the first matched character.
        raw_end: Raw index after the last matched character (exclusive).
        score: Context score, 0..2 * EXACT_CONTEXT_SCORE.
        clean_start: Clean index of the first matched character.
        clean_end: Clean index after the last matched character.
    """

    raw_start: int
    raw_end: int
    score: int
    clean_start: int
    clean_end: int


def find_occurrences(clean_text: str, needle: str) -> list[int]:
    """Return the start of every (possibly overlapping) occurrence."""
    starts: list[int] = []
    if not needle:
        return starts
    pos = clean_text.find(needle)
    while pos != -1:
        starts.append(pos)
        pos = clean_text.find(needle, pos + 1)
    return starts


def _prefix_score(clean_text: str, start: int, prefix: str, limit: int) -> int:
    if not prefix:
        return 0
    window = clean_text[max(0, start - limit) : start]
    if window.rstrip().endswith(prefix):
        return EXACT_CONTEXT_SCORE
    if prefix in window:
        return PARTIAL_CONTEXT_SCORE
    return 0


def _suffix_score(clean_text: str, end: int, suffix: str, limit: int) -> int:
    if not suffix:
        return 0
    window = clean_text[end : end + limit]
    if window.lstrip().startswith(suffix):
        return EXACT_CONTEXT_SCORE
    if suffix in window:
        return PARTIAL_CONTEXT_SCORE
    return 0


def score_occurrences(
    fingerprint: AnchorFingerprint,
    projection: CleanProjection,
) -> list[tuple[int, int]]:
    """Score every occurrence of the fingerprint's clean selection.

    Returns:
        ``(clean_start, score)`` pairs in document order.  Empty when the
        clean selection is empty or does not occur.
    """
    needle = clean_fragment(fingerprint.selection_text)
    if not needle:
        return []

    prefix = clean_fragment(fingerprint.prefix_context)
    suffix = clean_fragment(fingerprint.suffix_context)
    # Window bound: the fingerprint's own context length, never shorter
    # than the clean context plus its separating space
    prefix_limit = max(len(fingerprint.prefix_context), len(prefix) + 1)
    suffix_limit = max(len(fingerprint.suffix_context), len(suffix) + 1)

    clean_text = projection.clean_text
    scored: list[tuple[int, int]] = []
    for start in find_occurrences(clean_text, needle):
        end = start + len(needle)
        score = _prefix_score(clean_text, start, prefix, prefix_limit)
        score += _suffix_score(clean_text, end, suffix, suffix_limit)
        scored.append((start, score))
    return scored


def resolve_anchor(
    fingerprint: AnchorFingerprint,
    projection: CleanProjection,
) -> MatchCandidate | None:
    """Find the best raw range for a fingerprint in the current body.

    Args:
        fingerprint: The persisted selection description.
        projection: Clean projection of the *current* body.

    Returns:
        The winning candidate, or None when the selection text no longer
        occurs (stale annotation) or cleans to nothing.
    """
    needle_length = len(clean_fragment(fingerprint.selection_text))
    best_start = -1
    best_score = NO_MATCH_SCORE

    scored = score_occurrences(fingerprint, projection)
    for start, score in scored:
        # Strictly greater: the first occurrence wins ties
        if score > best_score:
            best_start, best_score = start, score

    if best_start < 0:
        logger.debug(
            "No occurrence of %r in current body",
            fingerprint.selection_text[:40],
        )
        return None

    best_end = best_start + needle_length
    clean_to_raw = projection.clean_to_raw
    logger.debug(
        "Resolved %r: %d occurrence(s), best score %d at clean %d",
        fingerprint.selection_text[:40],
        len(scored),
        best_score,
        best_start,
    )
    return MatchCandidate(
        raw_start=clean_to_raw[best_start],
        raw_end=clean_to_raw[best_end - 1] + 1,
        score=best_score,
        clean_start=best_start,
        clean_end=best_end,
    )
