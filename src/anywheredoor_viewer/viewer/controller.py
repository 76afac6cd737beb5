"""Lifecycle orchestration for one embedded 360 video viewer."""
from __future__ import annotations

import math
from typing import Any, Callable, Optional

import numpy as np
from loguru import logger
from PyQt6.QtCore import QEvent, QObject, Qt, pyqtSignal
from PyQt6.QtWidgets import QVBoxLayout, QWidget

from ..config import ViewerSettings
from ..models.viewer_session import ViewerSession
from .fullscreen import probe_fullscreen, toggle_fullscreen
from .input_bindings import InputBindings
from .orientation import OrientationTracker
from .panorama_widget import PanoramaSurface
from .scene import ResourceLedger
from .video_source import VideoSource, VideoSourceConfig

SourceFactory = Callable[[VideoSourceConfig, QObject], Any]
SurfaceFactory = Callable[[OrientationTracker, ViewerSettings, ResourceLedger, QWidget], Any]


class ViewerController(QObject):
    """Create, wire and tear down the viewer parts in step with mount/unmount.

    Everything a mount creates (video source, tracker, GL surface, input
    bindings, session) lives on this instance only, so any number of viewers
    can coexist. Changing the source URL is a full unmount followed by a mount.
    """

    loadingChanged = pyqtSignal(bool)
    playingChanged = pyqtSignal(bool)
    timeChanged = pyqtSignal(float)
    durationChanged = pyqtSignal(float)
    volumeChanged = pyqtSignal(float)
    mutedChanged = pyqtSignal(bool)
    fullscreenChanged = pyqtSignal(bool)
    errorOccurred = pyqtSignal(str)
    stateChanged = pyqtSignal(object)  # ViewerSession

    def __init__(
        self,
        container: QWidget,
        video_url: str,
        autoplay: bool = False,
        show_controls: bool = True,
        *,
        settings: Optional[ViewerSettings] = None,
        fullscreen_widget: Optional[QWidget] = None,
        source_factory: Optional[SourceFactory] = None,
        surface_factory: Optional[SurfaceFactory] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._container = container
        self._fullscreen_widget = fullscreen_widget or container
        self._video_url = video_url
        self._autoplay = autoplay
        self._show_controls = show_controls
        self._settings = settings or ViewerSettings()
        self._source_factory: SourceFactory = source_factory or (
            lambda config, owner: VideoSource(config, owner)
        )
        self._surface_factory: SurfaceFactory = surface_factory or PanoramaSurface
        self._ledger = ResourceLedger()

        self._session: Optional[ViewerSession] = None
        self._tracker: Optional[OrientationTracker] = None
        self._source: Optional[Any] = None
        self._surface: Optional[Any] = None
        self._surface_bindings: Optional[InputBindings] = None
        self._window_bindings: Optional[InputBindings] = None
        self._source_connections: list[tuple[Any, Callable[..., None]]] = []
        self._destroyed = False

    # ------------------------------------------------------------------
    @property
    def mounted(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Optional[ViewerSession]:
        return self._session

    @property
    def tracker(self) -> Optional[OrientationTracker]:
        return self._tracker

    @property
    def surface(self) -> Optional[Any]:
        return self._surface

    @property
    def source(self) -> Optional[Any]:
        return self._source

    @property
    def ledger(self) -> ResourceLedger:
        return self._ledger

    @property
    def video_url(self) -> str:
        return self._video_url

    # Lifecycle --------------------------------------------------------
    def mount(self) -> None:
        if self._destroyed:
            raise RuntimeError("Viewer has been destroyed")
        if self.mounted:
            return
        logger.info("Mounting 360 viewer for {}", self._video_url)
        self._session = ViewerSession(
            source_url=self._video_url,
            autoplay=self._autoplay,
            show_controls=self._show_controls,
        )
        try:
            self._tracker = OrientationTracker(self._settings.sensitivity)
            self._source = self._source_factory(
                VideoSourceConfig(self._video_url, autoplay=self._autoplay), self
            )
            self._connect_source()

            self._surface = self._surface_factory(
                self._tracker, self._settings, self._ledger, self._container
            )
            self._surface.sceneFailed.connect(self._on_scene_failed)
            self._container_layout().addWidget(self._surface)
            self._source.frameReady.connect(self._surface.push_frame)

            self._surface_bindings = InputBindings(self._surface_handlers(), self)
            self._surface_bindings.attach(self._surface)
            self._window_bindings = InputBindings(
                {QEvent.Type.WindowStateChange: self._on_window_state_changed}, self
            )
            self._window_bindings.attach(self._fullscreen_widget)

            self._surface.start_rendering()
            self._source.load()
        except Exception:
            logger.exception("Mounting viewer for {} failed", self._video_url)
            self.unmount()
            raise
        self._session.volume = self._source.volume
        self._session.fullscreen = probe_fullscreen(self._fullscreen_widget).is_fullscreen()
        self._emit_all()

    def unmount(self) -> None:
        """Release everything the mount created.

        The render loop is cancelled before any GL resource is freed. Each
        step runs even if an earlier one fails; the first failure is re-raised
        once all steps are done.
        """
        if not self.mounted:
            return
        steps = (
            ("render loop", self._stop_render_loop),
            ("input bindings", self._detach_bindings),
            ("scene", self._release_surface),
            ("video source", self._release_source),
        )
        first_error: Optional[BaseException] = None
        for name, step in steps:
            try:
                step()
            except Exception as exc:  # noqa: BLE001
                logger.error("Failed to release {}: {}", name, exc)
                if first_error is None:
                    first_error = exc
        self._surface = None
        self._source = None
        self._tracker = None
        self._surface_bindings = None
        self._window_bindings = None
        self._session = None
        logger.info("Unmounted 360 viewer; live resources {}", self._ledger.snapshot())
        if first_error is not None:
            raise first_error

    def set_source(self, video_url: str, autoplay: Optional[bool] = None) -> None:
        """Switch videos by tearing down and rebuilding the whole viewer."""
        if self._destroyed:
            raise RuntimeError("Viewer has been destroyed")
        self.unmount()
        self._video_url = video_url
        if autoplay is not None:
            self._autoplay = autoplay
        self.mount()

    def destroy(self) -> None:
        if self._destroyed:
            return
        try:
            self.unmount()
        finally:
            self._destroyed = True

    # Transport --------------------------------------------------------
    def play(self) -> None:
        if self._source is None or self._session is None or self._session.has_error:
            return
        self._source.play()

    def pause(self) -> None:
        if self._source is None:
            return
        self._source.pause()

    def toggle_play(self) -> None:
        if self._session is None:
            return
        if self._session.playing:
            self.pause()
        else:
            self.play()

    def seek(self, seconds: float) -> float:
        if self._source is None or self._session is None:
            return 0.0
        applied = self._source.seek(seconds)
        self._session.current_time = applied
        self.timeChanged.emit(applied)
        self.stateChanged.emit(self._session)
        return applied

    def set_volume(self, level: float) -> float:
        if self._source is None or self._session is None:
            return 0.0
        applied = self._source.set_volume(level)
        self._session.volume = applied
        self.volumeChanged.emit(applied)
        self.stateChanged.emit(self._session)
        return applied

    def set_muted(self, muted: bool) -> bool:
        if self._source is None:
            return True
        applied = self._source.set_muted(muted)
        self.mutedChanged.emit(applied)
        return applied

    def toggle_fullscreen(self) -> bool:
        reached = toggle_fullscreen(self._fullscreen_widget)
        self._set_fullscreen(reached)
        return reached

    def reset_view(self) -> None:
        if self._tracker is not None:
            self._tracker.reset()

    def current_frame(self) -> Optional[np.ndarray]:
        if self._source is None:
            return None
        return self._source.last_frame

    # Teardown steps ---------------------------------------------------
    def _stop_render_loop(self) -> None:
        if self._surface is not None:
            self._surface.stop_rendering()

    def _detach_bindings(self) -> None:
        for bindings in (self._surface_bindings, self._window_bindings):
            if bindings is not None:
                bindings.detach()
                bindings.deleteLater()

    def _release_surface(self) -> None:
        surface = self._surface
        if surface is None:
            return
        try:
            surface.release()
        finally:
            layout = self._container.layout()
            if layout is not None:
                layout.removeWidget(surface)
            surface.setParent(None)
            surface.deleteLater()

    def _release_source(self) -> None:
        source = self._source
        if source is None:
            return
        connections, self._source_connections = self._source_connections, []
        for signal, slot in connections:
            try:
                signal.disconnect(slot)
            except TypeError:
                logger.debug("Source signal already disconnected: {}", slot)
        try:
            source.dispose()
        finally:
            source.deleteLater()

    # Wiring -----------------------------------------------------------
    def _container_layout(self):
        layout = self._container.layout()
        if layout is None:
            layout = QVBoxLayout(self._container)
            layout.setContentsMargins(0, 0, 0, 0)
        return layout

    def _connect_source(self) -> None:
        table = (
            (self._source.metadataReady, self._on_metadata_ready),
            (self._source.durationChanged, self._on_duration_updated),
            (self._source.timeUpdated, self._on_time_updated),
            (self._source.playStarted, self._on_play_started),
            (self._source.playPaused, self._on_play_paused),
            (self._source.failed, self._on_source_failed),
        )
        for signal, slot in table:
            signal.connect(slot)
            self._source_connections.append((signal, slot))

    def _surface_handlers(self) -> dict:
        return {
            QEvent.Type.MouseButtonPress: self._on_mouse_press,
            QEvent.Type.MouseMove: self._on_mouse_move,
            QEvent.Type.MouseButtonRelease: self._on_mouse_release,
            QEvent.Type.Leave: self._on_pointer_leave,
            QEvent.Type.TouchBegin: self._on_touch_begin,
            QEvent.Type.TouchUpdate: self._on_touch_update,
            QEvent.Type.TouchEnd: self._on_touch_end,
            QEvent.Type.TouchCancel: self._on_touch_end,
            QEvent.Type.Wheel: self._on_wheel,
            QEvent.Type.KeyPress: self._on_key_press,
        }

    # Input handlers ---------------------------------------------------
    def _on_mouse_press(self, event) -> bool:
        if event.button() != Qt.MouseButton.LeftButton or self._tracker is None:
            return False
        pos = event.position()
        self._tracker.begin(pos.x(), pos.y())
        self._surface.setCursor(Qt.CursorShape.ClosedHandCursor)
        self._surface.setFocus()
        self._surface.hide_instructions()
        return True

    def _on_mouse_move(self, event) -> bool:
        if self._tracker is None or not self._tracker.dragging:
            return False
        pos = event.position()
        return self._tracker.move(pos.x(), pos.y())

    def _on_mouse_release(self, event) -> bool:
        if event.button() != Qt.MouseButton.LeftButton or self._tracker is None:
            return False
        self._end_drag()
        return True

    def _on_pointer_leave(self, event) -> bool:
        self._end_drag()
        return False

    def _on_touch_begin(self, event) -> bool:
        if self._tracker is None:
            return False
        self._tracker.touch_begin(_touch_points(event))
        self._surface.hide_instructions()
        event.accept()
        return True

    def _on_touch_update(self, event) -> bool:
        if self._tracker is None:
            return False
        points = _touch_points(event)
        if len(points) == 1 and not self._tracker.dragging:
            # A second finger lifted: resume from the remaining one.
            self._tracker.touch_begin(points)
            return True
        self._tracker.touch_move(points)
        return True

    def _on_touch_end(self, event) -> bool:
        self._end_drag()
        return True

    def _on_wheel(self, event) -> bool:
        steps = event.angleDelta().y() / 120.0
        if steps:
            self._surface.zoom(steps)
        event.accept()
        return True

    def _on_key_press(self, event) -> bool:
        if self._tracker is None:
            return False
        step = self._settings.keyboard_step
        key = event.key()
        if key in (Qt.Key.Key_Left, Qt.Key.Key_A):
            self._tracker.nudge(step, 0.0)
        elif key in (Qt.Key.Key_Right, Qt.Key.Key_D):
            self._tracker.nudge(-step, 0.0)
        elif key in (Qt.Key.Key_Up, Qt.Key.Key_W):
            self._tracker.nudge(0.0, step)
        elif key in (Qt.Key.Key_Down, Qt.Key.Key_S):
            self._tracker.nudge(0.0, -step)
        elif key in (Qt.Key.Key_R, Qt.Key.Key_Home):
            self._tracker.reset()
        elif key == Qt.Key.Key_Space:
            self.toggle_play()
        elif key == Qt.Key.Key_F:
            self.toggle_fullscreen()
        else:
            return False
        self._surface.hide_instructions()
        return True

    def _on_window_state_changed(self, event) -> bool:
        self._set_fullscreen(probe_fullscreen(self._fullscreen_widget).is_fullscreen())
        return False

    def _end_drag(self) -> None:
        if self._tracker is not None and self._tracker.dragging:
            self._tracker.end()
            if self._surface is not None:
                self._surface.setCursor(Qt.CursorShape.OpenHandCursor)

    # Source / scene events --------------------------------------------
    def _on_metadata_ready(self, duration: float) -> None:
        if self._session is None:
            return
        self._session.duration = max(0.0, duration) if math.isfinite(duration) else 0.0
        self._session.loading = False
        self.durationChanged.emit(self._session.duration)
        self.loadingChanged.emit(False)
        self.stateChanged.emit(self._session)

    def _on_duration_updated(self, duration: float) -> None:
        if self._session is None or self._session.has_error:
            return
        self._session.duration = max(0.0, duration) if math.isfinite(duration) else 0.0
        self.durationChanged.emit(self._session.duration)
        self.stateChanged.emit(self._session)

    def _on_time_updated(self, position: float) -> None:
        if self._session is None:
            return
        self._session.current_time = max(0.0, position)
        self.timeChanged.emit(self._session.current_time)
        self.stateChanged.emit(self._session)

    def _on_play_started(self) -> None:
        self._set_playing(True)

    def _on_play_paused(self) -> None:
        self._set_playing(False)

    def _on_source_failed(self, message: str) -> None:
        self._fail(f"Video failed to load: {message}")

    def _on_scene_failed(self, message: str) -> None:
        self._fail(f"3D view unavailable: {message}")

    # State helpers ----------------------------------------------------
    def _set_playing(self, playing: bool) -> None:
        if self._session is None or self._session.has_error or self._session.playing == playing:
            return
        self._session.playing = playing
        self.playingChanged.emit(playing)
        self.stateChanged.emit(self._session)

    def _set_fullscreen(self, fullscreen: bool) -> None:
        if self._session is not None:
            if self._session.fullscreen == fullscreen:
                return
            self._session.fullscreen = fullscreen
            self.stateChanged.emit(self._session)
        self.fullscreenChanged.emit(fullscreen)

    def _fail(self, message: str) -> None:
        if self._session is None:
            return
        was_playing = self._session.playing
        self._session.fail(message)
        logger.error("Viewer error: {}", message)
        self.loadingChanged.emit(False)
        if was_playing:
            self.playingChanged.emit(False)
        self.errorOccurred.emit(message)
        self.stateChanged.emit(self._session)

    def _emit_all(self) -> None:
        session = self._session
        if session is None:
            return
        self.loadingChanged.emit(session.loading)
        self.playingChanged.emit(session.playing)
        self.timeChanged.emit(session.current_time)
        self.durationChanged.emit(session.duration)
        self.volumeChanged.emit(session.volume)
        if self._source is not None:
            self.mutedChanged.emit(self._source.muted)
        self.fullscreenChanged.emit(session.fullscreen)
        self.stateChanged.emit(session)


def _touch_points(event) -> list[tuple[float, float]]:
    points = []
    for point in event.points():
        pos = point.position()
        points.append((pos.x(), pos.y()))
    return points
