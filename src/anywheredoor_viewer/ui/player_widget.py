"""360 video player widget: viewer surface plus transport controls."""
from __future__ import annotations

import math
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QSlider,
    QStyle,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from ..config import ViewerSettings
from ..models.viewer_session import ViewerSession
from ..viewer.controller import ViewerController

SEEK_SCALE = 10  # slider ticks per second
VOLUME_SCALE = 10  # slider ticks per unit volume


def format_time(seconds: float) -> str:
    """Render seconds as ``m:ss``; unknown or negative values show ``0:00``."""
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


class VideoPlayer360(QWidget):
    """Embeddable player; mounts its viewer on construction."""

    def __init__(
        self,
        video_url: str,
        autoplay: bool = False,
        controls: bool = True,
        parent: Optional[QWidget] = None,
        *,
        settings: Optional[ViewerSettings] = None,
        **controller_options,
    ) -> None:
        super().__init__(parent)
        self.setMinimumSize(480, 320)
        self._controls_enabled = controls

        self._viewport = QWidget(self)
        self._viewport.setStyleSheet("background-color: black;")
        self._overlay = QLabel("Loading 360° Video...", self)
        self._overlay.setObjectName("playerOverlay")
        self._overlay.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._overlay.setWordWrap(True)

        self._controls = self._build_controls()
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(self._viewport, 1)
        layout.addWidget(self._controls)

        self.controller = ViewerController(
            self._viewport,
            video_url,
            autoplay=autoplay,
            show_controls=controls,
            settings=settings,
            fullscreen_widget=self,
            parent=self,
            **controller_options,
        )
        self._connect_controller()
        self.controller.mount()

    # Public surface ---------------------------------------------------
    @property
    def session(self) -> Optional[ViewerSession]:
        return self.controller.session

    def play(self) -> None:
        self.controller.play()

    def pause(self) -> None:
        self.controller.pause()

    def toggle_play(self) -> None:
        self.controller.toggle_play()

    def seek(self, seconds: float) -> float:
        return self.controller.seek(seconds)

    def set_volume(self, level: float) -> float:
        return self.controller.set_volume(level)

    def toggle_fullscreen(self) -> bool:
        return self.controller.toggle_fullscreen()

    def set_source(self, video_url: str, autoplay: Optional[bool] = None) -> None:
        self._show_overlay("Loading 360° Video...", error=False)
        self.controller.set_source(video_url, autoplay)

    # ------------------------------------------------------------------
    def _build_controls(self) -> QWidget:
        bar = QWidget(self)
        bar.setObjectName("playerControls")
        row = QHBoxLayout(bar)
        row.setContentsMargins(12, 6, 12, 6)
        row.setSpacing(10)

        style = self.style()
        self._play_button = QToolButton(bar)
        self._play_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_MediaPlay))
        self._play_button.setToolTip("Play")
        self._play_button.clicked.connect(self.toggle_play)

        self._time_label = QLabel("0:00 / 0:00", bar)

        self._seek_slider = QSlider(Qt.Orientation.Horizontal, bar)
        self._seek_slider.setRange(0, 0)
        self._seek_slider.sliderMoved.connect(self._on_seek_slider_moved)

        self._mute_button = QToolButton(bar)
        self._mute_button.setCheckable(True)
        self._mute_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_MediaVolume))
        self._mute_button.toggled.connect(self._on_mute_toggled)

        self._volume_slider = QSlider(Qt.Orientation.Horizontal, bar)
        self._volume_slider.setRange(0, VOLUME_SCALE)
        self._volume_slider.setSingleStep(1)
        self._volume_slider.setValue(VOLUME_SCALE)
        self._volume_slider.setFixedWidth(90)
        self._volume_slider.valueChanged.connect(self._on_volume_slider_changed)

        self._fullscreen_button = QToolButton(bar)
        self._fullscreen_button.setIcon(style.standardIcon(QStyle.StandardPixmap.SP_TitleBarMaxButton))
        self._fullscreen_button.setToolTip("Enter Fullscreen")
        self._fullscreen_button.clicked.connect(self.toggle_fullscreen)

        row.addWidget(self._play_button)
        row.addWidget(self._time_label)
        row.addWidget(self._seek_slider, 1)
        row.addWidget(self._mute_button)
        row.addWidget(self._volume_slider)
        row.addWidget(self._fullscreen_button)
        bar.setVisible(False)
        return bar

    def _connect_controller(self) -> None:
        controller = self.controller
        controller.loadingChanged.connect(self._on_loading_changed)
        controller.playingChanged.connect(self._on_playing_changed)
        controller.timeChanged.connect(self._on_time_changed)
        controller.durationChanged.connect(self._on_duration_changed)
        controller.volumeChanged.connect(self._on_volume_changed)
        controller.mutedChanged.connect(self._on_muted_changed)
        controller.fullscreenChanged.connect(self._on_fullscreen_changed)
        controller.errorOccurred.connect(self._on_error)

    def _refresh_controls_visibility(self) -> None:
        session = self.controller.session
        visible = bool(
            self._controls_enabled
            and session is not None
            and not session.loading
            and not session.has_error
        )
        self._controls.setVisible(visible)

    def _show_overlay(self, text: str, error: bool) -> None:
        self._overlay.setText(text)
        self._overlay.setProperty("error", error)
        self._overlay.style().unpolish(self._overlay)
        self._overlay.style().polish(self._overlay)
        self._overlay.adjustSize()
        self._overlay.setVisible(True)
        self._place_overlay()
        self._overlay.raise_()

    def _place_overlay(self) -> None:
        width = min(self._viewport.width() - 40, max(self._overlay.sizeHint().width(), 240))
        self._overlay.setFixedWidth(max(200, width))
        self._overlay.adjustSize()
        geometry = self._viewport.geometry()
        x = geometry.x() + (geometry.width() - self._overlay.width()) // 2
        y = geometry.y() + (geometry.height() - self._overlay.height()) // 2
        self._overlay.move(max(0, x), max(0, y))

    def _update_time_label(self) -> None:
        session = self.controller.session
        if session is None:
            return
        self._time_label.setText(f"{format_time(session.current_time)} / {format_time(session.duration)}")

    # Controller callbacks ---------------------------------------------
    def _on_loading_changed(self, loading: bool) -> None:
        session = self.controller.session
        if loading:
            self._show_overlay("Loading 360° Video...", error=False)
        elif session is None or not session.has_error:
            self._overlay.setVisible(False)
        self._refresh_controls_visibility()

    def _on_playing_changed(self, playing: bool) -> None:
        pixmap = QStyle.StandardPixmap.SP_MediaPause if playing else QStyle.StandardPixmap.SP_MediaPlay
        self._play_button.setIcon(self.style().standardIcon(pixmap))
        self._play_button.setToolTip("Pause" if playing else "Play")

    def _on_time_changed(self, seconds: float) -> None:
        if not self._seek_slider.isSliderDown():
            self._seek_slider.setValue(int(seconds * SEEK_SCALE))
        self._update_time_label()

    def _on_duration_changed(self, seconds: float) -> None:
        self._seek_slider.setRange(0, int(seconds * SEEK_SCALE))
        self._update_time_label()

    def _on_volume_changed(self, level: float) -> None:
        value = int(round(level * VOLUME_SCALE))
        if self._volume_slider.value() != value:
            self._volume_slider.blockSignals(True)
            self._volume_slider.setValue(value)
            self._volume_slider.blockSignals(False)

    def _on_muted_changed(self, muted: bool) -> None:
        pixmap = QStyle.StandardPixmap.SP_MediaVolumeMuted if muted else QStyle.StandardPixmap.SP_MediaVolume
        self._mute_button.setIcon(self.style().standardIcon(pixmap))
        if self._mute_button.isChecked() != muted:
            self._mute_button.blockSignals(True)
            self._mute_button.setChecked(muted)
            self._mute_button.blockSignals(False)

    def _on_fullscreen_changed(self, fullscreen: bool) -> None:
        pixmap = (
            QStyle.StandardPixmap.SP_TitleBarNormalButton
            if fullscreen
            else QStyle.StandardPixmap.SP_TitleBarMaxButton
        )
        self._fullscreen_button.setIcon(self.style().standardIcon(pixmap))
        self._fullscreen_button.setToolTip("Exit Fullscreen" if fullscreen else "Enter Fullscreen")

    def _on_error(self, message: str) -> None:
        self._show_overlay(message, error=True)
        self._refresh_controls_visibility()

    def _on_seek_slider_moved(self, value: int) -> None:
        self.controller.seek(value / SEEK_SCALE)

    def _on_volume_slider_changed(self, value: int) -> None:
        self.controller.set_volume(value / VOLUME_SCALE)

    def _on_mute_toggled(self, checked: bool) -> None:
        self.controller.set_muted(checked)

    # Qt overrides -----------------------------------------------------
    def resizeEvent(self, event) -> None:  # noqa: N802
        super().resizeEvent(event)
        if self._overlay.isVisible():
            self._place_overlay()

    def closeEvent(self, event) -> None:  # noqa: N802
        self.controller.destroy()
        super().closeEvent(event)
