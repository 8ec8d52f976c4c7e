"""Marker format constants for annotation highlights.

The markers are inline HTML, so the Markdown renderer passes them through
and the structural scanner drops them from the clean projection.  A body
with markers therefore anchors exactly like the same body without them.

Used by anchoring/injector.py (inject_markers).
"""

from __future__ import annotations

import re

HIGHLIGHT_OPEN_TEMPLATE = (
    '<mark class="annotation-highlight" data-annotation-id="{}">'
)
HIGHLIGHT_CLOSE = "</mark>"
# Empty element: the icon comes from CSS so no text enters the document
AFFORDANCE_TEMPLATE = (
    '<sup class="annotation-affordance" data-annotation-id="{}"></sup>'
)

HIGHLIGHT_OPEN_PATTERN = re.compile(
    r'<mark class="annotation-highlight" data-annotation-id="([^"]*)">'
)
AFFORDANCE_PATTERN = re.compile(
    r'<sup class="annotation-affordance" data-annotation-id="([^"]*)"></sup>'
)
