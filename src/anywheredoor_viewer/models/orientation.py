"""Camera orientation and drag gesture state."""
from __future__ import annotations

import math
from dataclasses import dataclass

HALF_PI = math.pi / 2.0


@dataclass(slots=True)
class OrientationState:
    """Look direction inside the sphere, in radians.

    Pitch is kept within [-pi/2, pi/2] so the camera never flips over a pole.
    Yaw is unbounded and wraps through the rotation itself.
    """

    yaw: float = 0.0
    pitch: float = 0.0

    def __post_init__(self) -> None:
        self.pitch = clamp_pitch(self.pitch)


@dataclass(slots=True)
class DragGesture:
    """Ephemeral pointer/touch tracking state."""

    active: bool = False
    x: float = 0.0
    y: float = 0.0

    def start(self, x: float, y: float) -> None:
        self.active = True
        self.x = x
        self.y = y

    def clear(self) -> None:
        self.active = False


def clamp_pitch(pitch: float) -> float:
    return max(-HALF_PI, min(HALF_PI, float(pitch)))
