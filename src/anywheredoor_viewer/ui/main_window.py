"""Main application window."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from loguru import logger
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QFileDialog,
    QInputDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QStackedWidget,
    QStatusBar,
)

from ..catalog import CatalogClient, Video
from ..config import AppConfig
from ..io.snapshot import save_snapshot
from ..workers.task_runner import FunctionTask, TaskRunner
from .catalog_dialog import CatalogDialog
from .player_widget import VideoPlayer360

VIDEO_FILTER = "Videos (*.mp4 *.webm *.mov *.mkv *.m4v);;All files (*)"


class MainWindow(QMainWindow):
    """Window hosting one 360 player and the catalogue browser."""

    def __init__(self, config: Optional[AppConfig] = None) -> None:
        super().__init__()
        self.setWindowTitle("AnyWhereDoor 360° Viewer")
        self.resize(1280, 760)
        self._config = config or AppConfig()
        self._client = CatalogClient(self._config.api_url, timeout=self._config.request_timeout)
        self._task_runner = TaskRunner()
        self._player: Optional[VideoPlayer360] = None

        self._stack = QStackedWidget(self)
        self._placeholder = QLabel("Open a 360° video from File or browse the catalogue.", self)
        self._placeholder.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._stack.addWidget(self._placeholder)
        self.setCentralWidget(self._stack)
        self.setStatusBar(QStatusBar(self))

        self._create_menu_bar()
        logger.info("UI initialised (catalogue at {})", self._config.api_url)

    @property
    def player(self) -> Optional[VideoPlayer360]:
        return self._player

    # ------------------------------------------------------------------
    def _create_menu_bar(self) -> None:
        bar = self.menuBar()
        file_menu = bar.addMenu("File")

        open_url_action = QAction("Open URL...", self)
        open_url_action.setShortcut(QKeySequence("Ctrl+L"))
        open_url_action.triggered.connect(self._on_open_url)
        file_menu.addAction(open_url_action)

        open_file_action = QAction("Open File...", self)
        open_file_action.setShortcut(QKeySequence.StandardKey.Open)
        open_file_action.triggered.connect(self._on_open_file)
        file_menu.addAction(open_file_action)

        browse_action = QAction("Browse Catalogue...", self)
        browse_action.setShortcut(QKeySequence("Ctrl+B"))
        browse_action.triggered.connect(self._on_browse_catalogue)
        file_menu.addAction(browse_action)

        file_menu.addSeparator()
        snapshot_action = QAction("Save Snapshot...", self)
        snapshot_action.setShortcut(QKeySequence("Ctrl+S"))
        snapshot_action.triggered.connect(self._on_save_snapshot)
        file_menu.addAction(snapshot_action)

        file_menu.addSeparator()
        exit_action = QAction("Quit", self)
        exit_action.setShortcut(QKeySequence.StandardKey.Quit)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        view_menu = bar.addMenu("View")
        reset_action = QAction("Reset View", self)
        reset_action.setShortcut(QKeySequence("Ctrl+R"))
        reset_action.triggered.connect(self._on_reset_view)
        view_menu.addAction(reset_action)

        fullscreen_action = QAction("Toggle Fullscreen", self)
        fullscreen_action.setShortcut(QKeySequence("F11"))
        fullscreen_action.triggered.connect(self._on_toggle_fullscreen)
        view_menu.addAction(fullscreen_action)

    # ------------------------------------------------------------------
    def open_url(self, url: str, autoplay: bool = False, controls: bool = True, title: str = "") -> None:
        """Show ``url`` in the player, remounting it if one is already open."""
        if self._player is None:
            self._player = VideoPlayer360(
                url,
                autoplay=autoplay,
                controls=controls,
                parent=self,
                settings=self._config.viewer,
            )
            self._player.controller.errorOccurred.connect(self._on_player_error)
            self._stack.addWidget(self._player)
        else:
            self._player.set_source(url, autoplay)
        self._stack.setCurrentWidget(self._player)
        self.statusBar().showMessage(title or url)
        logger.info("Playing {}", url)

    def open_video(self, video: Video, autoplay: bool = False, controls: bool = True) -> None:
        try:
            url = self._client.resolve_media_url(video.video_url)
        except ValueError as exc:
            QMessageBox.warning(self, "Open Video", f"{video.title}: {exc}")
            return
        self.open_url(url, autoplay=autoplay, controls=controls, title=video.title)

    def open_catalog_video(self, video_id: str, autoplay: bool = False, controls: bool = True) -> None:
        """Look the video up in the catalogue, then play it."""
        self.statusBar().showMessage(f"Fetching video {video_id}...")
        task = FunctionTask(self._client.get_video, video_id)
        self._task_runner.submit(
            task,
            lambda video: self.open_video(video, autoplay=autoplay, controls=controls),
            self._on_task_failure,
        )

    # ------------------------------------------------------------------
    def _on_open_url(self) -> None:
        url, ok = QInputDialog.getText(self, "Open URL", "360° video URL:")
        if ok and url.strip():
            self.open_url(url.strip())

    def _on_open_file(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Open 360° Video", str(Path.home()), VIDEO_FILTER)
        if file_path:
            self.open_url(file_path)

    def _on_browse_catalogue(self) -> None:
        dialog = CatalogDialog(self._client, self._task_runner, self)
        if dialog.exec() == CatalogDialog.DialogCode.Accepted and dialog.selected_video is not None:
            self.open_video(dialog.selected_video)

    def _on_save_snapshot(self) -> None:
        frame = self._player.controller.current_frame() if self._player is not None else None
        if frame is None:
            QMessageBox.information(self, "Save Snapshot", "No video frame has been decoded yet.")
            return
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save Snapshot", str(Path.home() / "snapshot.png"), "Images (*.png *.jpg)"
        )
        if not file_path:
            return
        try:
            written = save_snapshot(frame, Path(file_path))
        except (OSError, ValueError) as exc:
            QMessageBox.warning(self, "Save Failed", f"Unable to write snapshot: {exc}")
            return
        self.statusBar().showMessage(f"Snapshot saved to {written}", 5000)

    def _on_reset_view(self) -> None:
        if self._player is not None:
            self._player.controller.reset_view()

    def _on_toggle_fullscreen(self) -> None:
        if self._player is not None:
            self._player.toggle_fullscreen()

    def _on_player_error(self, message: str) -> None:
        self.statusBar().showMessage(message)

    def _on_task_failure(self, message: str) -> None:
        self.statusBar().clearMessage()
        logger.error("Background task failed: {}", message)
        QMessageBox.critical(self, "Error", f"Operation failed:\n{message}")

    def closeEvent(self, event) -> None:  # noqa: N802
        if self._player is not None:
            self._player.controller.destroy()
        self._task_runner.wait(2000)
        super().closeEvent(event)
