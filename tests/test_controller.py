import math

import numpy as np
import pytest
from PyQt6.QtCore import QEvent, QPointF, Qt
from PyQt6.QtGui import QKeyEvent, QMouseEvent
from PyQt6.QtMultimedia import QMediaPlayer
from PyQt6.QtWidgets import QApplication, QWidget

from anywheredoor_viewer.config import ViewerSettings
from anywheredoor_viewer.viewer.controller import ViewerController
from anywheredoor_viewer.viewer.video_source import VideoSource
from conftest import FakeAudio, FakePlayer, FakeSink, FakeSource, FakeSurface


class Harness:
    def __init__(self, url="file:///tmp/tour.mp4", autoplay=False):
        self.journal = []
        self.sources = []
        self.surfaces = []
        self.container = QWidget()
        self.controller = ViewerController(
            self.container,
            url,
            autoplay=autoplay,
            settings=ViewerSettings(),
            source_factory=self._make_source,
            surface_factory=self._make_surface,
        )

    def _make_source(self, config, owner):
        source = FakeSource(config, owner, self.journal)
        self.sources.append(source)
        return source

    def _make_surface(self, tracker, settings, ledger, parent):
        surface = FakeSurface(tracker, settings, ledger, parent, self.journal)
        self.surfaces.append(surface)
        return surface


def _mouse(kind, x, y, button=Qt.MouseButton.LeftButton):
    point = QPointF(x, y)
    buttons = Qt.MouseButton.LeftButton if kind != QEvent.Type.MouseButtonRelease else Qt.MouseButton.NoButton
    return QMouseEvent(kind, point, point, button, buttons, Qt.KeyboardModifier.NoModifier)


def test_mount_creates_session_and_loads(qapp):
    harness = Harness()
    harness.controller.mount()
    session = harness.controller.session
    assert session.loading and not session.playing and session.error is None
    assert harness.sources[0].loaded
    assert harness.surfaces[0].rendering
    assert harness.container.layout().indexOf(harness.surfaces[0]) >= 0


def test_repeated_mount_unmount_releases_everything(qapp):
    harness = Harness()
    for _ in range(3):
        harness.controller.mount()
        harness.controller.unmount()
    assert len(harness.sources) == 3
    assert all(source.disposed for source in harness.sources)
    assert all(surface.released for surface in harness.surfaces)
    assert not harness.controller.mounted
    assert harness.container.layout().count() == 0


def test_unmount_stops_rendering_before_releasing(qapp):
    harness = Harness()
    harness.controller.mount()
    harness.controller.unmount()
    assert harness.journal == ["load", "stop rendering", "release scene", "dispose source"]


def test_unmount_runs_every_step_and_reraises_first_error(qapp):
    harness = Harness()
    harness.controller.mount()
    surface = harness.surfaces[0]

    def broken_release():
        raise RuntimeError("context lost")

    surface.release = broken_release
    with pytest.raises(RuntimeError, match="context lost"):
        harness.controller.unmount()
    assert harness.sources[0].disposed
    assert not harness.controller.mounted


def test_metadata_clears_loading(qapp):
    harness = Harness()
    harness.controller.mount()
    durations = []
    harness.controller.durationChanged.connect(durations.append)
    harness.sources[0].metadataReady.emit(95.0)
    assert harness.controller.session.duration == 95.0
    assert not harness.controller.session.loading
    assert durations == [95.0]


def test_source_failure_enters_error_state(qapp):
    harness = Harness()
    harness.controller.mount()
    errors = []
    harness.controller.errorOccurred.connect(errors.append)
    harness.sources[0].failed.emit("404")
    session = harness.controller.session
    assert session.has_error
    assert not session.loading
    assert errors == ["Video failed to load: 404"]
    # Play is refused once the viewer has failed.
    harness.controller.play()
    assert not session.playing


def test_scene_failure_enters_error_state(qapp):
    harness = Harness()
    harness.controller.mount()
    harness.surfaces[0].sceneFailed.emit("no OpenGL")
    assert harness.controller.session.error == "3D view unavailable: no OpenGL"


def test_play_pause_reflected_in_session(qapp):
    harness = Harness()
    harness.controller.mount()
    harness.controller.toggle_play()
    assert harness.controller.session.playing
    harness.controller.toggle_play()
    assert not harness.controller.session.playing


def test_seek_and_volume_are_clamped(qapp):
    harness = Harness()
    harness.controller.mount()
    harness.sources[0].duration = 60.0
    assert harness.controller.seek(75.0) == 60.0
    assert harness.controller.session.current_time == 60.0
    assert harness.controller.set_volume(2.0) == 1.0
    assert harness.controller.session.volume == 1.0


def test_autoplay_viewer_stays_muted(qapp):
    harness = Harness(autoplay=True)
    harness.controller.mount()
    assert harness.sources[0].muted
    assert harness.controller.set_muted(False) is True


def test_frames_flow_to_surface(qapp):
    harness = Harness()
    harness.controller.mount()
    frame = np.zeros((2, 4, 3), dtype=np.uint8)
    harness.sources[0].frameReady.emit(frame)
    assert harness.surfaces[0].frames == [frame]


def test_set_source_remounts_with_fresh_parts(qapp):
    harness = Harness()
    harness.controller.mount()
    harness.controller.set_source("file:///tmp/other.mp4", autoplay=True)
    assert len(harness.sources) == 2
    assert harness.sources[0].disposed
    assert harness.sources[1].config.url == "file:///tmp/other.mp4"
    assert harness.sources[1].config.autoplay
    assert harness.controller.session.source_url == "file:///tmp/other.mp4"


def test_destroyed_viewer_cannot_remount(qapp):
    harness = Harness()
    harness.controller.mount()
    harness.controller.destroy()
    harness.controller.destroy()
    with pytest.raises(RuntimeError):
        harness.controller.mount()


def test_mouse_drag_rotates_view(qapp):
    harness = Harness()
    harness.controller.mount()
    surface = harness.surfaces[0]
    QApplication.sendEvent(surface, _mouse(QEvent.Type.MouseButtonPress, 100, 100))
    QApplication.sendEvent(surface, _mouse(QEvent.Type.MouseMove, 200, 100, Qt.MouseButton.NoButton))
    QApplication.sendEvent(surface, _mouse(QEvent.Type.MouseButtonRelease, 200, 100))
    state = harness.controller.tracker.state
    assert math.isclose(state.yaw, 100 * ViewerSettings().sensitivity)
    assert state.pitch == 0.0
    assert not harness.controller.tracker.dragging


def test_keys_nudge_and_reset_view(qapp):
    harness = Harness()
    harness.controller.mount()
    surface = harness.surfaces[0]
    step = ViewerSettings().keyboard_step
    QApplication.sendEvent(surface, QKeyEvent(QEvent.Type.KeyPress, Qt.Key.Key_Left, Qt.KeyboardModifier.NoModifier))
    assert math.isclose(harness.controller.tracker.state.yaw, step)
    QApplication.sendEvent(surface, QKeyEvent(QEvent.Type.KeyPress, Qt.Key.Key_R, Qt.KeyboardModifier.NoModifier))
    assert harness.controller.tracker.state.yaw == 0.0


def test_input_ignored_after_unmount(qapp):
    harness = Harness()
    harness.controller.mount()
    surface = harness.surfaces[0]
    tracker = harness.controller.tracker
    harness.controller.unmount()
    QApplication.sendEvent(surface, _mouse(QEvent.Type.MouseButtonPress, 0, 0))
    QApplication.sendEvent(surface, _mouse(QEvent.Type.MouseMove, 50, 0, Qt.MouseButton.NoButton))
    assert tracker.state.yaw == 0.0


def test_late_duration_reaches_session(qapp):
    players = []

    def real_source(config, owner):
        player = FakePlayer()
        players.append(player)
        return VideoSource(config, owner, player=player, audio=FakeAudio(), sink=FakeSink())

    container = QWidget()
    controller = ViewerController(
        container,
        "https://cdn.test/stream.m3u8",
        source_factory=real_source,
        surface_factory=lambda tracker, settings, ledger, parent: FakeSurface(tracker, settings, ledger, parent),
    )
    controller.mount()
    durations = []
    controller.durationChanged.connect(durations.append)
    # Streams can report LoadedMedia before their length is known.
    players[0].mediaStatusChanged.emit(QMediaPlayer.MediaStatus.LoadedMedia)
    assert controller.session.duration == 0.0
    assert not controller.session.loading
    players[0].durationChanged.emit(90_500)
    assert controller.session.duration == 90.5
    assert durations == [0.0, 90.5]
    assert controller.seek(200.0) == 90.5
    controller.destroy()


def test_late_play_ignored_after_failure(qapp):
    harness = Harness()
    harness.controller.mount()
    harness.sources[0].failed.emit("decoder crashed")
    harness.sources[0].playStarted.emit()
    session = harness.controller.session
    assert session.has_error
    assert not session.playing
