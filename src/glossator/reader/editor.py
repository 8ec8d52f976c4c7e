"""Floating note editor state machine.

Selection capture and the floating editor's drag/resize gestures are
modelled as explicit states driven by discrete input events:

    IDLE --pointer_down--> SELECTING --selection_released--> EDITING_NOTE
    EDITING_NOTE --drag_start--> DRAGGING --drag_end--> EDITING_NOTE
    EDITING_NOTE --resize_start--> RESIZING --resize_end--> EDITING_NOTE
    EDITING_NOTE --commit | cancel--> IDLE

A release with an empty selection returns to IDLE.  A new selection while
editing overwrites the pending fingerprint.  Events with no transition from
the current state are logged and ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from glossator.anchoring.capture import CapturedSelection

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 320.0
DEFAULT_HEIGHT = 200.0
MIN_WIDTH = 160.0
MIN_HEIGHT = 100.0


class EditorState(StrEnum):
    IDLE = "idle"
    SELECTING = "selecting"
    EDITING_NOTE = "editing_note"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class EditorEvent(StrEnum):
    POINTER_DOWN = "pointer_down"
    SELECTION_RELEASED = "selection_released"
    DRAG_START = "drag_start"
    DRAG_END = "drag_end"
    RESIZE_START = "resize_start"
    RESIZE_END = "resize_end"
    COMMIT = "commit"
    CANCEL = "cancel"


_S = EditorState
_E = EditorEvent

TRANSITIONS: dict[tuple[EditorState, EditorEvent], EditorState] = {
    (_S.IDLE, _E.POINTER_DOWN): _S.SELECTING,
    # Keyboard selections arrive without a pointer press
    (_S.IDLE, _E.SELECTION_RELEASED): _S.EDITING_NOTE,
    (_S.SELECTING, _E.SELECTION_RELEASED): _S.EDITING_NOTE,
    (_S.SELECTING, _E.CANCEL): _S.IDLE,
    (_S.EDITING_NOTE, _E.POINTER_DOWN): _S.SELECTING,
    (_S.EDITING_NOTE, _E.SELECTION_RELEASED): _S.EDITING_NOTE,
    (_S.EDITING_NOTE, _E.DRAG_START): _S.DRAGGING,
    (_S.EDITING_NOTE, _E.RESIZE_START): _S.RESIZING,
    (_S.EDITING_NOTE, _E.COMMIT): _S.IDLE,
    (_S.EDITING_NOTE, _E.CANCEL): _S.IDLE,
    (_S.DRAGGING, _E.DRAG_END): _S.EDITING_NOTE,
    (_S.RESIZING, _E.RESIZE_END): _S.EDITING_NOTE,
}


@dataclass(frozen=True, slots=True)
class EditorGeometry:
    """Position and size of the floating editor, in viewport pixels."""

    x: float = 0.0
    y: float = 0.0
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT

    def moved(self, dx: float, dy: float) -> EditorGeometry:
        return replace(self, x=self.x + dx, y=self.y + dy)

    def resized(self, dw: float, dh: float) -> EditorGeometry:
        return replace(
            self,
            width=max(MIN_WIDTH, self.width + dw),
            height=max(MIN_HEIGHT, self.height + dh),
        )


class NoteEditor:
    """Holds the pending selection, the note draft and editor geometry."""

    def __init__(self) -> None:
        self.state = EditorState.IDLE
        self.pending: CapturedSelection | None = None
        self.draft = ""
        self.geometry = EditorGeometry()

    def _fire(self, event: EditorEvent) -> bool:
        target = TRANSITIONS.get((self.state, event))
        if target is None:
            logger.debug("Ignoring %s in state %s", event, self.state)
            return False
        logger.debug("Editor %s --%s--> %s", self.state, event, target)
        self.state = target
        return True

    def pointer_down(self) -> bool:
        return self._fire(EditorEvent.POINTER_DOWN)

    def selection_released(
        self,
        captured: CapturedSelection | None,
        x: float = 0.0,
        y: float = 0.0,
    ) -> bool:
        """Finish a selection and open the editor at ``(x, y)``.

        An empty selection (``captured`` is None) is a no-op that returns
        the machine to IDLE without touching the pending fingerprint.
        """
        if captured is None:
            if self.state is EditorState.SELECTING:
                self._fire(EditorEvent.CANCEL)
            return False
        if not self._fire(EditorEvent.SELECTION_RELEASED):
            return False
        self.pending = captured
        self.draft = ""
        self.geometry = replace(self.geometry, x=x, y=y)
        return True

    def start_drag(self) -> bool:
        return self._fire(EditorEvent.DRAG_START)

    def drag(self, dx: float, dy: float) -> bool:
        if self.state is not EditorState.DRAGGING:
            logger.debug("Ignoring drag in state %s", self.state)
            return False
        self.geometry = self.geometry.moved(dx, dy)
        return True

    def end_drag(self) -> bool:
        return self._fire(EditorEvent.DRAG_END)

    def start_resize(self) -> bool:
        return self._fire(EditorEvent.RESIZE_START)

    def resize(self, dw: float, dh: float) -> bool:
        if self.state is not EditorState.RESIZING:
            logger.debug("Ignoring resize in state %s", self.state)
            return False
        self.geometry = self.geometry.resized(dw, dh)
        return True

    def end_resize(self) -> bool:
        return self._fire(EditorEvent.RESIZE_END)

    def commit(self) -> bool:
        """Close the editor after the note has been stored."""
        if not self._fire(EditorEvent.COMMIT):
            return False
        self._clear()
        return True

    def cancel(self) -> bool:
        if not self._fire(EditorEvent.CANCEL):
            return False
        self._clear()
        return True

    def reset(self) -> None:
        """Drop any pending selection and return to IDLE."""
        self.state = EditorState.IDLE
        self._clear()

    def _clear(self) -> None:
        self.pending = None
        self.draft = ""
