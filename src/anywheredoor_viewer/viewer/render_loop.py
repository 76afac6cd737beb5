"""Display-synchronised redraw loop with an explicit cancellation handle."""
from __future__ import annotations

from typing import Callable

from loguru import logger


class RenderLoop:
    """Self-rescheduling frame task.

    ``request_frame`` asks the surface for one repaint (``QWidget.update``).
    The surface reports each presented frame through :meth:`on_frame_presented`
    (wired to ``QOpenGLWidget.frameSwapped``), which schedules the next one,
    so the loop runs at the display's refresh cadence. :attr:`active` is the
    only switch consulted before scheduling or drawing a frame.
    """

    def __init__(self, request_frame: Callable[[], None]) -> None:
        self._request_frame = request_frame
        self._active = False
        self._pending = False
        self.frames_requested = 0

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending(self) -> bool:
        return self._pending

    def start(self) -> None:
        if self._active:
            return
        self._active = True
        logger.debug("Render loop started")
        self._schedule()

    def on_frame_presented(self) -> None:
        self._pending = False
        if self._active:
            self._schedule()

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._pending = False
        logger.debug("Render loop cancelled after {} frames", self.frames_requested)

    def _schedule(self) -> None:
        if not self._active or self._pending:
            return
        self._pending = True
        self.frames_requested += 1
        self._request_frame()
