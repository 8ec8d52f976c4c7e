"""Text anchoring: capture, relocate and highlight annotations in a body."""

from glossator.anchoring.boundaries import expand_range
from glossator.anchoring.capture import CapturedSelection, capture_selection
from glossator.anchoring.fingerprint import CONTEXT_LENGTH, AnchorFingerprint
from glossator.anchoring.injector import (
    PlacedAnnotation,
    RenderResult,
    inject_markers,
    render_annotated_body,
)
from glossator.anchoring.rendered_view import RenderedView, TocEntry
from glossator.anchoring.resolver import MatchCandidate, resolve_anchor
from glossator.anchoring.scanner import CleanProjection, clean_fragment, project_body

__all__ = [
    "CONTEXT_LENGTH",
    "AnchorFingerprint",
    "CapturedSelection",
    "CleanProjection",
    "MatchCandidate",
    "PlacedAnnotation",
    "RenderResult",
    "RenderedView",
    "TocEntry",
    "capture_selection",
    "clean_fragment",
    "expand_range",
    "inject_markers",
    "project_body",
    "render_annotated_body",
    "resolve_anchor",
]
