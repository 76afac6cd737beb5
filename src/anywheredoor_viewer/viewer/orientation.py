"""Translate drag gestures into camera yaw/pitch."""
from __future__ import annotations

from typing import Sequence, Tuple

from loguru import logger

from ..models.orientation import DragGesture, OrientationState, clamp_pitch

Point = Tuple[float, float]


class OrientationTracker:
    """Pure orientation state driven by pointer and single-finger touch drags.

    The render loop reads :attr:`state` once per frame; updates are applied
    immediately, without smoothing or inertia.
    """

    def __init__(self, sensitivity: float = 0.005) -> None:
        if sensitivity <= 0.0:
            raise ValueError("Sensitivity must be positive")
        self._sensitivity = float(sensitivity)
        self._state = OrientationState()
        self._gesture = DragGesture()

    @property
    def state(self) -> OrientationState:
        return self._state

    @property
    def gesture(self) -> DragGesture:
        return self._gesture

    @property
    def sensitivity(self) -> float:
        return self._sensitivity

    @property
    def dragging(self) -> bool:
        return self._gesture.active

    # Pointer ----------------------------------------------------------
    def begin(self, x: float, y: float) -> None:
        self._gesture.start(float(x), float(y))

    def move(self, x: float, y: float) -> bool:
        """Apply the delta since the last recorded point. Returns True if rotated."""
        if not self._gesture.active:
            return False
        x = float(x)
        y = float(y)
        dx = x - self._gesture.x
        dy = y - self._gesture.y
        self._state.yaw += dx * self._sensitivity
        self._state.pitch = clamp_pitch(self._state.pitch + dy * self._sensitivity)
        self._gesture.x = x
        self._gesture.y = y
        return True

    def end(self) -> None:
        self._gesture.clear()

    # Touch ------------------------------------------------------------
    def touch_begin(self, points: Sequence[Point]) -> None:
        if len(points) == 1:
            self.begin(*points[0])
        else:
            logger.debug("Ignoring touch start with {} points", len(points))

    def touch_move(self, points: Sequence[Point]) -> bool:
        if len(points) != 1:
            # A second finger ends the drag; lifting back to one finger restarts it.
            self._gesture.clear()
            return False
        return self.move(*points[0])

    def touch_end(self) -> None:
        self.end()

    # Direct control ---------------------------------------------------
    def nudge(self, dyaw: float, dpitch: float) -> None:
        self._state.yaw += dyaw
        self._state.pitch = clamp_pitch(self._state.pitch + dpitch)

    def reset(self) -> None:
        self._state.yaw = 0.0
        self._state.pitch = 0.0
        self._gesture.clear()
