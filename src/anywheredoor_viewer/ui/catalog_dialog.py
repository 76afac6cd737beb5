"""Dialog for browsing the AnyWhereDoor catalogue."""
from __future__ import annotations

from typing import Optional

from loguru import logger
from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
)

from ..catalog import CatalogClient, Category, Video, VideoPage
from ..workers.task_runner import FunctionTask, TaskRunner
from .player_widget import format_time

PAGE_SIZE = 12


def describe_video(video: Video) -> str:
    """One list line: title, place and duration when known."""
    parts = [video.title or "(untitled)"]
    if video.place:
        parts.append(video.place)
    if video.duration:
        parts.append(format_time(video.duration))
    return " · ".join(parts)


class CatalogDialog(QDialog):
    """Search, filter and page through catalogue videos, then pick one."""

    def __init__(self, client: CatalogClient, runner: TaskRunner, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Browse AnyWhereDoor")
        self.resize(640, 520)
        self._client = client
        self._runner = runner
        self._page = 1
        self._last_page: Optional[VideoPage] = None
        self._selected: Optional[Video] = None
        self._build_ui()
        self._load_categories()
        self._load_page(1)

    @property
    def selected_video(self) -> Optional[Video]:
        return self._selected

    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)

        filters = QHBoxLayout()
        self._search_edit = QLineEdit(self)
        self._search_edit.setPlaceholderText("Search scenic videos...")
        self._search_edit.returnPressed.connect(lambda: self._load_page(1))
        self._category_combo = QComboBox(self)
        self._category_combo.addItem("All categories", None)
        self._category_combo.currentIndexChanged.connect(lambda _index: self._load_page(1))
        search_button = QPushButton("Search", self)
        search_button.clicked.connect(lambda: self._load_page(1))
        filters.addWidget(self._search_edit, 1)
        filters.addWidget(self._category_combo)
        filters.addWidget(search_button)
        layout.addLayout(filters)

        self._list = QListWidget(self)
        self._list.itemDoubleClicked.connect(lambda _item: self._accept_selection())
        layout.addWidget(self._list, 1)

        pager = QHBoxLayout()
        self._prev_button = QPushButton("Previous", self)
        self._prev_button.clicked.connect(lambda: self._load_page(self._page - 1))
        self._next_button = QPushButton("Next", self)
        self._next_button.clicked.connect(lambda: self._load_page(self._page + 1))
        self._page_label = QLabel("", self)
        self._page_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        pager.addWidget(self._prev_button)
        pager.addWidget(self._page_label, 1)
        pager.addWidget(self._next_button)
        layout.addLayout(pager)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Open | QDialogButtonBox.StandardButton.Cancel,
            parent=self,
        )
        buttons.accepted.connect(self._accept_selection)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)
        self._update_pager()

    def _load_categories(self) -> None:
        task = FunctionTask(self._client.categories)
        self._runner.submit(task, self._categories_loaded, self._request_failed)

    def _categories_loaded(self, categories: list[Category]) -> None:
        self._category_combo.blockSignals(True)
        for category in categories:
            self._category_combo.addItem(category.name, category.slug)
        self._category_combo.blockSignals(False)

    def _load_page(self, page: int) -> None:
        page = max(1, page)
        self._page_label.setText("Loading...")
        self._prev_button.setEnabled(False)
        self._next_button.setEnabled(False)
        task = FunctionTask(
            self._client.list_videos,
            page=page,
            limit=PAGE_SIZE,
            category=self._category_combo.currentData(),
            search=self._search_edit.text().strip() or None,
        )
        self._runner.submit(task, self._page_loaded, self._request_failed)

    def _page_loaded(self, page: VideoPage) -> None:
        self._last_page = page
        self._page = page.page
        self._list.clear()
        for video in page.videos:
            item = QListWidgetItem(describe_video(video))
            item.setData(Qt.ItemDataRole.UserRole, video)
            if video.description:
                item.setToolTip(video.description)
            self._list.addItem(item)
        self._update_pager()
        logger.debug("Catalogue page {} loaded ({} videos)", page.page, len(page.videos))

    def _request_failed(self, message: str) -> None:
        logger.error("Catalogue request failed: {}", message)
        self._update_pager()
        self._page_label.setText(f"Catalogue unavailable: {message}")

    def _update_pager(self) -> None:
        page = self._last_page
        self._prev_button.setEnabled(bool(page and page.has_previous))
        self._next_button.setEnabled(bool(page and page.has_next))
        if page is not None:
            self._page_label.setText(f"Page {page.page} ({len(page.videos)} videos)")

    def _accept_selection(self) -> None:
        item = self._list.currentItem()
        if item is None:
            return
        self._selected = item.data(Qt.ItemDataRole.UserRole)
        self.accept()
