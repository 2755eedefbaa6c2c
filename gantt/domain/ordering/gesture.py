"""
Pointer gesture recognition for task rows: click, double-click or drag.

    idle --press--> pressed
    pressed --move beyond threshold--> dragging           (DRAG_START)
    pressed --release--> released
    released --press within window--> second_pressed      (DOUBLE_CLICK)
    released --window expires (poll / next press)--> idle (CLICK)
    dragging --move--> dragging                           (DRAG_MOVE)
    dragging --release--> idle                            (DROP)
    dragging --cancel--> idle                             (DRAG_CANCEL)
    second_pressed --release--> idle

Time comes from a monotonic clock; callers may pass `now` explicitly.
"""
from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional


class GestureState(str, Enum):
    IDLE = "idle"
    PRESSED = "pressed"
    DRAGGING = "dragging"
    RELEASED = "released"
    SECOND_PRESSED = "second_pressed"


class GestureKind(str, Enum):
    CLICK = "click"
    DOUBLE_CLICK = "double_click"
    DRAG_START = "drag_start"
    DRAG_MOVE = "drag_move"
    DROP = "drop"
    DRAG_CANCEL = "drag_cancel"


@dataclass(frozen=True)
class GestureEvent:
    kind: GestureKind
    x: float
    y: float


class PointerGesture:
    def __init__(
        self,
        drag_threshold: float = 5.0,
        double_click_window: float = 0.3,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = drag_threshold
        self._window = double_click_window
        self._clock = clock
        self._state = GestureState.IDLE
        self._origin = (0.0, 0.0)
        self._released_at = 0.0

    @property
    def state(self) -> GestureState:
        return self._state

    def _now(self, now: Optional[float]) -> float:
        return self._clock() if now is None else now

    def press(self, x: float, y: float, now: Optional[float] = None) -> List[GestureEvent]:
        t = self._now(now)
        events: List[GestureEvent] = []

        if self._state is GestureState.RELEASED:
            if t - self._released_at <= self._window:
                self._state = GestureState.SECOND_PRESSED
                return [GestureEvent(GestureKind.DOUBLE_CLICK, x, y)]
            # first click timed out before anyone polled
            events.append(GestureEvent(GestureKind.CLICK, *self._origin))
            self._state = GestureState.IDLE

        if self._state is GestureState.IDLE:
            self._state = GestureState.PRESSED
            self._origin = (x, y)
        return events

    def move(self, x: float, y: float, now: Optional[float] = None) -> List[GestureEvent]:
        if self._state is GestureState.PRESSED:
            ox, oy = self._origin
            if math.hypot(x - ox, y - oy) >= self._threshold:
                self._state = GestureState.DRAGGING
                return [GestureEvent(GestureKind.DRAG_START, ox, oy)]
            return []
        if self._state is GestureState.DRAGGING:
            return [GestureEvent(GestureKind.DRAG_MOVE, x, y)]
        return []

    def release(self, x: float, y: float, now: Optional[float] = None) -> List[GestureEvent]:
        if self._state is GestureState.PRESSED:
            self._state = GestureState.RELEASED
            self._released_at = self._now(now)
            return []
        if self._state is GestureState.DRAGGING:
            self._state = GestureState.IDLE
            return [GestureEvent(GestureKind.DROP, x, y)]
        if self._state is GestureState.SECOND_PRESSED:
            self._state = GestureState.IDLE
        return []

    def poll(self, now: Optional[float] = None) -> List[GestureEvent]:
        """Emit a pending CLICK once the double-click window has passed."""
        if self._state is GestureState.RELEASED and self._now(now) - self._released_at > self._window:
            self._state = GestureState.IDLE
            return [GestureEvent(GestureKind.CLICK, *self._origin)]
        return []

    def cancel(self) -> List[GestureEvent]:
        was_dragging = self._state is GestureState.DRAGGING
        self._state = GestureState.IDLE
        if was_dragging:
            return [GestureEvent(GestureKind.DRAG_CANCEL, *self._origin)]
        return []
