"""
Pointer-driven annotation state machine.

The engine owns one :class:`AnnotationState` per chart session. Drag tools go
``idle -> drawing -> idle`` and commit a shape on release. The text tool asks
the UI layer (a :class:`CaptureHost`) to show an input at the click point and
waits in ``capturing_text`` until that input is submitted, blurred or
cancelled. Each capture is dismissed exactly once, whichever exit fires
first; later events for it are ignored.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from chartdesk.charts.surface import Surface
from .draw import draw_shape
from .shapes import Point, TextAnnotation, ToolMode, build_shape

logger = logging.getLogger(__name__)

SHORTCUTS = {
    "l": ToolMode.LINE,
    "h": ToolMode.HORIZONTAL,
    "r": ToolMode.RECTANGLE,
    "f": ToolMode.FIBONACCI,
    "t": ToolMode.TEXT,
}


class Phase(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    CAPTURING_TEXT = "capturing_text"


@dataclass
class TextCapture:
    """Handle for one open text input. ``value`` mirrors what the user has typed."""
    capture_id: int
    anchor: Point
    value: str = ""
    dismissed: bool = False


class CaptureHost(Protocol):
    def open_capture(self, capture: TextCapture) -> None: ...

    def close_capture(self, capture: TextCapture) -> None: ...


@dataclass
class AnnotationState:
    shapes: List = field(default_factory=list)
    tool: ToolMode = ToolMode.NONE
    phase: Phase = Phase.IDLE
    start: Optional[Point] = None
    pointer: Optional[Point] = None
    capture: Optional[TextCapture] = None

    @property
    def is_drawing(self) -> bool:
        return self.phase is Phase.DRAWING


class AnnotationEngine:
    def __init__(self, surface: Surface, capture_host: Optional[CaptureHost] = None,
                 state: Optional[AnnotationState] = None):
        self.surface = surface
        self.capture_host = capture_host
        self.state = state or AnnotationState()
        self._capture_seq = 0

    @property
    def shapes(self) -> Tuple:
        return tuple(self.state.shapes)

    @property
    def tool(self) -> ToolMode:
        return self.state.tool

    # ---------- tools ----------
    def select_tool(self, tool: ToolMode) -> ToolMode:
        """Activate ``tool``; selecting the active tool again turns tools off."""
        tool = ToolMode(tool)
        new_tool = ToolMode.NONE if tool is self.state.tool else tool
        if self.state.is_drawing and new_tool is not self.state.tool:
            logger.debug("Tool switched mid-gesture, discarding %s preview", self.state.tool.value)
            self._end_gesture()
            self.render()
        self.state.tool = new_tool
        return new_tool

    def clear_tool(self) -> None:
        if self.state.is_drawing:
            self._end_gesture()
            self.render()
        self.state.tool = ToolMode.NONE

    def reset(self) -> None:
        """Drop every committed shape and turn tools off."""
        if self.state.capture is not None:
            self._dismiss(self.state.capture)
        self._end_gesture()
        self.state.shapes = []
        self.state.tool = ToolMode.NONE
        self.render()

    def handle_key(self, key: str) -> bool:
        """Global shortcuts. Returns False when the key was not consumed."""
        if self.state.capture is not None:
            # focus is inside the text input
            return False
        if key == "Escape":
            if self.state.tool is ToolMode.NONE and not self.state.is_drawing:
                self.reset()
            else:
                self.clear_tool()
            return True
        tool = SHORTCUTS.get(key.lower()) if len(key) == 1 else None
        if tool is None:
            return False
        self.select_tool(tool)
        return True

    # ---------- pointer ----------
    def pointer_down(self, x: float, y: float) -> None:
        if self.state.capture is not None:
            # clicking away from an open input behaves like losing focus
            self.capture_blur(self.state.capture)
        tool = self.state.tool
        if tool is ToolMode.TEXT:
            self._open_capture((x, y))
        elif tool.draws_by_drag and self.state.phase is Phase.IDLE:
            self.state.phase = Phase.DRAWING
            self.state.start = (x, y)
            self.state.pointer = (x, y)

    def pointer_move(self, x: float, y: float) -> None:
        if not self.state.is_drawing:
            return
        self.state.pointer = (x, y)
        self.render()

    def pointer_up(self, x: float, y: float):
        """Commit the gesture in progress. Returns the new shape, if any."""
        if not self.state.is_drawing:
            return None
        shape = build_shape(self.state.tool, self.state.start, (x, y), self.surface.width)
        self.state.shapes.append(shape)
        self._end_gesture()
        self.render()
        logger.debug("Committed %s %s", shape.kind, shape)
        return shape

    pointer_leave = pointer_up

    # ---------- text capture ----------
    def _open_capture(self, anchor: Point) -> TextCapture:
        self._capture_seq += 1
        capture = TextCapture(capture_id=self._capture_seq, anchor=anchor)
        self.state.capture = capture
        self.state.phase = Phase.CAPTURING_TEXT
        if self.capture_host is not None:
            self.capture_host.open_capture(capture)
        return capture

    def _is_live(self, capture: TextCapture) -> bool:
        return capture is self.state.capture and not capture.dismissed

    def capture_input(self, capture: TextCapture, value: str) -> None:
        if self._is_live(capture):
            capture.value = value

    def capture_key(self, capture: TextCapture, key: str, value: Optional[str] = None):
        """Enter commits non-empty text, Escape cancels. Returns the committed shape, if any."""
        if not self._is_live(capture):
            return None
        if value is not None:
            capture.value = value
        if key == "Enter" and capture.value.strip():
            shape = self._commit_text(capture)
            self._dismiss(capture)
            return shape
        if key == "Escape":
            self._dismiss(capture)
        return None

    def capture_blur(self, capture: TextCapture, value: Optional[str] = None):
        if not self._is_live(capture):
            return None
        if value is not None:
            capture.value = value
        shape = self._commit_text(capture) if capture.value.strip() else None
        self._dismiss(capture)
        return shape

    def _commit_text(self, capture: TextCapture) -> TextAnnotation:
        shape = TextAnnotation(anchor=capture.anchor, text=capture.value.strip())
        self.state.shapes.append(shape)
        self.render()
        return shape

    def _dismiss(self, capture: TextCapture) -> None:
        if capture.dismissed:
            return
        capture.dismissed = True
        if self.state.capture is capture:
            self.state.capture = None
            self.state.phase = Phase.IDLE
        if self.capture_host is not None:
            self.capture_host.close_capture(capture)

    # ---------- drawing ----------
    def _end_gesture(self) -> None:
        self.state.start = None
        self.state.pointer = None
        if self.state.phase is Phase.DRAWING:
            self.state.phase = Phase.IDLE

    def render(self) -> None:
        """Clear and repaint committed shapes, plus the live preview while dragging."""
        self.surface.clear()
        for shape in self.state.shapes:
            draw_shape(self.surface, shape)
        if self.state.is_drawing and self.state.pointer is not None:
            preview = build_shape(self.state.tool, self.state.start, self.state.pointer, self.surface.width)
            draw_shape(self.surface, preview)
