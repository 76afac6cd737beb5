"""Streaming video source backed by QtMultimedia."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np
from loguru import logger
from PyQt6.QtCore import QObject, QUrl, pyqtSignal
from PyQt6.QtMultimedia import QAudioOutput, QMediaPlayer, QVideoFrame, QVideoSink

from ..io.frames import qimage_to_rgb
from ..math.geometry import clamp


@dataclass(slots=True, frozen=True)
class VideoSourceConfig:
    """How a source is opened.

    Playback always loops. Autoplay forces muting because platforms refuse
    unmuted autoplay; the caller's ``muted`` preference only applies otherwise.
    """

    url: str
    autoplay: bool = False
    muted: bool = False

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("Video source URL is required")

    @property
    def loop(self) -> bool:
        return True

    @property
    def effective_muted(self) -> bool:
        return True if self.autoplay else self.muted


class VideoSource(QObject):
    """Own one media player and surface its lifecycle as signals.

    Transport controls clamp their inputs rather than rejecting them.
    """

    metadataReady = pyqtSignal(float)  # duration in seconds
    durationChanged = pyqtSignal(float)  # later corrections, seconds
    timeUpdated = pyqtSignal(float)  # position in seconds
    playStarted = pyqtSignal()
    playPaused = pyqtSignal()
    failed = pyqtSignal(str)
    frameReady = pyqtSignal(object)  # np.ndarray RGB uint8

    def __init__(
        self,
        config: VideoSourceConfig,
        parent: Optional[QObject] = None,
        *,
        player: Optional[Any] = None,
        audio: Optional[Any] = None,
        sink: Optional[Any] = None,
    ) -> None:
        super().__init__(parent)
        self._config = config
        self._player = player if player is not None else QMediaPlayer(self)
        self._audio = audio if audio is not None else QAudioOutput(self)
        self._sink = sink if sink is not None else QVideoSink(self)

        self._duration = 0.0
        self._position = 0.0
        self._volume = 1.0
        self._muted = config.effective_muted
        self._playing = False
        self._requested_playing = False
        self._metadata_emitted = False
        self._failed = False
        self._disposed = False
        self._last_frame: Optional[np.ndarray] = None
        self._connections: list[tuple[Any, Callable[..., None]]] = []

        self._player.setAudioOutput(self._audio)
        self._player.setVideoSink(self._sink)
        self._player.setLoops(QMediaPlayer.Loops.Infinite.value)
        self._audio.setMuted(self._muted)
        self._audio.setVolume(self._volume)
        self._connect_player()

    # ------------------------------------------------------------------
    @property
    def config(self) -> VideoSourceConfig:
        return self._config

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def position(self) -> float:
        return self._position

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def playing(self) -> bool:
        return self._playing

    @property
    def has_failed(self) -> bool:
        return self._failed

    @property
    def last_frame(self) -> Optional[np.ndarray]:
        return self._last_frame

    # ------------------------------------------------------------------
    def load(self) -> None:
        self._ensure_alive()
        self._duration = 0.0
        self._position = 0.0
        self._metadata_emitted = False
        self._failed = False
        self._last_frame = None
        self._requested_playing = self._config.autoplay
        logger.info("Opening video source {} (autoplay={})", self._config.url, self._config.autoplay)
        self._player.setSource(QUrl.fromUserInput(self._config.url))
        if self._config.autoplay:
            self._player.play()

    def play(self) -> None:
        self._ensure_alive()
        if self._playing:
            return
        self._requested_playing = True
        self._player.play()

    def pause(self) -> None:
        self._ensure_alive()
        # Autoplay may not have reported PlayingState yet.
        if not (self._playing or self._requested_playing):
            return
        self._requested_playing = False
        self._player.pause()

    def seek(self, seconds: float) -> float:
        """Move the playhead, clamped to ``[0, duration]``. Returns the applied time."""
        self._ensure_alive()
        target = clamp(float(seconds), 0.0, self._duration)
        self._player.setPosition(int(round(target * 1000.0)))
        self._position = target
        return target

    def set_volume(self, level: float) -> float:
        self._ensure_alive()
        self._volume = clamp(float(level), 0.0, 1.0)
        self._audio.setVolume(self._volume)
        return self._volume

    def set_muted(self, muted: bool) -> bool:
        self._ensure_alive()
        if self._config.autoplay and not muted:
            logger.debug("Autoplaying source stays muted")
            return self._muted
        self._muted = bool(muted)
        self._audio.setMuted(self._muted)
        return self._muted

    def stop(self) -> None:
        if self._disposed:
            return
        self._player.stop()

    def dispose(self) -> None:
        """Stop playback and release the player; safe to call more than once."""
        if self._disposed:
            return
        self._disconnect_player()
        self._player.stop()
        self._player.setVideoSink(None)
        self._player.setSource(QUrl())
        self._playing = False
        self._last_frame = None
        self._disposed = True
        logger.debug("Video source {} disposed", self._config.url)

    # ------------------------------------------------------------------
    def _connect_player(self) -> None:
        table = (
            (self._player.durationChanged, self._on_duration_changed),
            (self._player.positionChanged, self._on_position_changed),
            (self._player.playbackStateChanged, self._on_playback_state_changed),
            (self._player.mediaStatusChanged, self._on_media_status_changed),
            (self._player.errorOccurred, self._on_error),
            (self._sink.videoFrameChanged, self._on_video_frame),
        )
        for signal, slot in table:
            signal.connect(slot)
            self._connections.append((signal, slot))

    def _disconnect_player(self) -> None:
        connections, self._connections = self._connections, []
        for signal, slot in connections:
            try:
                signal.disconnect(slot)
            except TypeError:
                logger.debug("Signal already disconnected: {}", slot)

    def _ensure_alive(self) -> None:
        if self._disposed:
            raise RuntimeError("Video source has been disposed")

    # Player callbacks -------------------------------------------------
    def _on_duration_changed(self, duration_ms: int) -> None:
        duration = max(0.0, duration_ms / 1000.0)
        changed = duration != self._duration
        self._duration = duration
        if duration <= 0.0:
            return
        if not self._metadata_emitted:
            self._emit_metadata()
        elif changed and not self._failed:
            # Streams may reach LoadedMedia before their length is known.
            logger.debug("Video duration updated to {:.2f}s", duration)
            self.durationChanged.emit(duration)

    def _on_position_changed(self, position_ms: int) -> None:
        self._position = max(0.0, position_ms / 1000.0)
        self.timeUpdated.emit(self._position)

    def _on_playback_state_changed(self, state: QMediaPlayer.PlaybackState) -> None:
        playing = state == QMediaPlayer.PlaybackState.PlayingState
        self._requested_playing = playing
        if playing == self._playing:
            return
        self._playing = playing
        if playing:
            self.playStarted.emit()
        else:
            self.playPaused.emit()

    def _on_media_status_changed(self, status: QMediaPlayer.MediaStatus) -> None:
        if status == QMediaPlayer.MediaStatus.LoadedMedia:
            self._emit_metadata()
        elif status == QMediaPlayer.MediaStatus.InvalidMedia:
            self._fail("Unsupported or unreadable media")

    def _on_error(self, error: QMediaPlayer.Error, message: str) -> None:
        if error == QMediaPlayer.Error.NoError:
            return
        self._fail(message or error.name)

    def _on_video_frame(self, frame: QVideoFrame) -> None:
        if not frame.isValid():
            return
        rgb = qimage_to_rgb(frame.toImage())
        if rgb is None:
            return
        self._last_frame = rgb
        self.frameReady.emit(rgb)

    def _emit_metadata(self) -> None:
        if self._metadata_emitted or self._failed:
            return
        self._metadata_emitted = True
        logger.info("Video metadata ready: duration {:.2f}s", self._duration)
        self.metadataReady.emit(self._duration)

    def _fail(self, message: str) -> None:
        if self._failed:
            return
        self._failed = True
        self._playing = False
        self._requested_playing = False
        logger.error("Video source {} failed: {}", self._config.url, message)
        self.failed.emit(message)
