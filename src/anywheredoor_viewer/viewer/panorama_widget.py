"""OpenGL surface that renders a live 360 video onto the panoramic sphere."""
from __future__ import annotations

from typing import Optional

import numpy as np
from loguru import logger
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QColor, QPainter
from PyQt6.QtOpenGLWidgets import QOpenGLWidget

from ..config import ViewerSettings
from .orientation import OrientationTracker
from .render_loop import RenderLoop
from .scene import PanoramicScene, ResourceLedger, SceneConstructionError


class PanoramaSurface(QOpenGLWidget):
    """Hosts one :class:`PanoramicScene` for the lifetime of a mounted viewer.

    The scene is built in ``initializeGL`` (the first moment a GL context is
    current) and torn down by :meth:`release`. Every paint reads the tracker's
    orientation and submits one frame; painting stops as soon as the render
    loop is cancelled.
    """

    sceneReady = pyqtSignal()
    sceneFailed = pyqtSignal(str)

    def __init__(
        self,
        tracker: OrientationTracker,
        settings: ViewerSettings,
        ledger: ResourceLedger,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setCursor(Qt.CursorShape.OpenHandCursor)
        self.setMinimumSize(320, 200)

        self._tracker = tracker
        self._settings = settings
        self._ledger = ledger
        self._scene: Optional[PanoramicScene] = None
        self._released = False
        self._loop = RenderLoop(self.update)
        self.frameSwapped.connect(self._loop.on_frame_presented)

        self._instructions_visible = True
        self._instruction_text = "Drag to look around • Scroll to zoom"

    # ------------------------------------------------------------------
    @property
    def scene(self) -> Optional[PanoramicScene]:
        return self._scene

    @property
    def render_loop(self) -> RenderLoop:
        return self._loop

    def start_rendering(self) -> None:
        if self._released:
            raise RuntimeError("Surface has been released")
        self._loop.start()

    def stop_rendering(self) -> None:
        self._loop.cancel()

    def push_frame(self, frame: np.ndarray) -> None:
        if self._scene is not None:
            self._scene.push_frame(frame)

    def zoom(self, steps: float) -> None:
        if self._scene is not None:
            fov = self._scene.camera.zoom(steps)
            logger.debug("Field of view now {:.1f} deg", fov)
        self.hide_instructions()

    def hide_instructions(self) -> None:
        if self._instructions_visible:
            self._instructions_visible = False
            self.update()

    def release(self) -> None:
        """Cancel rendering and free every GL resource. Idempotent."""
        self._loop.cancel()
        if self._released:
            return
        self._released = True
        try:
            self.frameSwapped.disconnect(self._loop.on_frame_presented)
        except TypeError:
            logger.debug("Frame signal already disconnected")
        if self._scene is None:
            return
        self.makeCurrent()
        try:
            self._scene.dispose()
        finally:
            self._scene = None
            self.doneCurrent()

    # ------------------------------------------------------------------
    def initializeGL(self) -> None:  # noqa: N802
        if self._released or self._scene is not None:
            return
        width, height = self._pixel_size()
        try:
            self._scene = PanoramicScene.create(self._settings, self._ledger, width, height)
        except SceneConstructionError as exc:
            logger.error("Unable to create panoramic scene: {}", exc)
            self._loop.cancel()
            self.sceneFailed.emit(str(exc))
            return
        logger.info("Panoramic scene ready at {}x{}", width, height)
        self.sceneReady.emit()

    def resizeGL(self, width: int, height: int) -> None:  # noqa: N802
        if self._scene is None:
            return
        ratio = self.devicePixelRatioF()
        self._scene.resize(int(round(width * ratio)), int(round(height * ratio)))

    def paintGL(self) -> None:  # noqa: N802
        if self._scene is None or not self._loop.active:
            return
        self._scene.render(self._tracker.state)

    def paintEvent(self, event):  # noqa: N802
        super().paintEvent(event)
        if not (self._instructions_visible and self._instruction_text):
            return
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        metrics = painter.fontMetrics()
        box_width = metrics.horizontalAdvance(self._instruction_text) + 24
        box_height = metrics.height() + 12
        painter.fillRect(16, 16, box_width, box_height, QColor(0, 0, 0, 128))
        painter.setPen(QColor(255, 255, 255))
        painter.drawText(28, 16 + 6 + metrics.ascent(), self._instruction_text)
        painter.end()

    def closeEvent(self, event) -> None:  # noqa: N802
        self.release()
        super().closeEvent(event)

    # ------------------------------------------------------------------
    def _pixel_size(self) -> tuple[int, int]:
        ratio = self.devicePixelRatioF()
        return int(round(self.width() * ratio)), int(round(self.height() * ratio))
