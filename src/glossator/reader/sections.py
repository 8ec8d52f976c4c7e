"""Active-section tracking for the reading surface."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from glossator.anchoring.rendered_view import RenderedView

logger = logging.getLogger(__name__)


class SectionTracker:
    """Reports the structural anchor currently in view.

    The viewing surface calls :meth:`report_visible_offset` with the
    visible-text offset at the top of the viewport; the callback fires only
    when the governing anchor changes.
    """

    def __init__(
        self,
        on_active_section: Callable[[str | None], None] | None = None,
    ) -> None:
        self._callback = on_active_section
        self._view: RenderedView | None = None
        self.active: str | None = None
        self._primed = False

    def reset(self, view: RenderedView | None) -> None:
        """Track a newly rendered view; the next report always notifies."""
        self._view = view
        self.active = None
        self._primed = False

    def rebind(self, view: RenderedView) -> None:
        """Swap in a re-render of the same document, keeping the active anchor."""
        self._view = view

    def report_visible_offset(self, offset: int) -> str | None:
        if self._view is None:
            return None
        anchor = self._view.location_id_at(offset)
        if self._primed and anchor == self.active:
            return anchor
        self._primed = True
        self.active = anchor
        logger.debug("Active section: %s", anchor)
        if self._callback is not None:
            self._callback(anchor)
        return anchor
