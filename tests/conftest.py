import os

import pytest
from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtMultimedia import QMediaPlayer
from PyQt6.QtWidgets import QWidget

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app


class FakeSignal:
    """Callable registry standing in for a bound Qt signal."""

    def __init__(self):
        self.slots = []

    def connect(self, slot):
        self.slots.append(slot)

    def disconnect(self, slot):
        if slot not in self.slots:
            raise TypeError("not connected")
        self.slots.remove(slot)

    def emit(self, *args):
        for slot in list(self.slots):
            slot(*args)


class FakePlayer:
    def __init__(self):
        self.durationChanged = FakeSignal()
        self.positionChanged = FakeSignal()
        self.playbackStateChanged = FakeSignal()
        self.mediaStatusChanged = FakeSignal()
        self.errorOccurred = FakeSignal()
        self.calls = []
        self.loops = None
        self.position_ms = None
        self.source = None
        self.sink = None
        self.reports_state = True

    def setAudioOutput(self, audio):  # noqa: N802
        self.audio = audio

    def setVideoSink(self, sink):  # noqa: N802
        self.sink = sink

    def setLoops(self, loops):  # noqa: N802
        self.loops = loops

    def setSource(self, url):  # noqa: N802
        self.source = url

    def setPosition(self, position_ms):  # noqa: N802
        self.position_ms = position_ms

    def play(self):
        self.calls.append("play")
        if self.reports_state:
            self.playbackStateChanged.emit(QMediaPlayer.PlaybackState.PlayingState)

    def pause(self):
        self.calls.append("pause")
        if self.reports_state:
            self.playbackStateChanged.emit(QMediaPlayer.PlaybackState.PausedState)

    def stop(self):
        self.calls.append("stop")


class FakeAudio:
    def __init__(self):
        self.muted = None
        self.volume = None

    def setMuted(self, muted):  # noqa: N802
        self.muted = muted

    def setVolume(self, volume):  # noqa: N802
        self.volume = volume


class FakeSink:
    def __init__(self):
        self.videoFrameChanged = FakeSignal()


class FakeSource(QObject):
    metadataReady = pyqtSignal(float)
    durationChanged = pyqtSignal(float)
    timeUpdated = pyqtSignal(float)
    playStarted = pyqtSignal()
    playPaused = pyqtSignal()
    failed = pyqtSignal(str)
    frameReady = pyqtSignal(object)

    def __init__(self, config, parent, journal=None):
        super().__init__(parent)
        self.config = config
        self.journal = journal if journal is not None else []
        self.volume = 1.0
        self.muted = config.effective_muted
        self.last_frame = None
        self.duration = 0.0
        self.loaded = False
        self.disposed = False

    def load(self):
        self.loaded = True
        self.journal.append("load")

    def play(self):
        self.playStarted.emit()

    def pause(self):
        self.playPaused.emit()

    def seek(self, seconds):
        return min(max(0.0, seconds), self.duration)

    def set_volume(self, level):
        self.volume = min(max(0.0, level), 1.0)
        return self.volume

    def set_muted(self, muted):
        self.muted = True if self.config.autoplay else muted
        return self.muted

    def dispose(self):
        self.disposed = True
        self.journal.append("dispose source")


class FakeSurface(QWidget):
    sceneFailed = pyqtSignal(str)

    def __init__(self, tracker, settings, ledger, parent, journal=None):
        super().__init__(parent)
        self.tracker = tracker
        self.journal = journal if journal is not None else []
        self.rendering = False
        self.released = False
        self.frames = []
        self.zoom_steps = []

    def start_rendering(self):
        self.rendering = True

    def stop_rendering(self):
        self.rendering = False
        self.journal.append("stop rendering")

    def push_frame(self, frame):
        self.frames.append(frame)

    def zoom(self, steps):
        self.zoom_steps.append(steps)

    def hide_instructions(self):
        pass

    def release(self):
        self.released = True
        self.journal.append("release scene")


