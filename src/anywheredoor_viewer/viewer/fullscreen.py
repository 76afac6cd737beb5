"""Fullscreen handling for top-level and embedded viewer widgets."""
from __future__ import annotations

from typing import Protocol

from loguru import logger
from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QWidget


class FullscreenBackend(Protocol):
    def is_fullscreen(self) -> bool: ...

    def enter(self) -> None: ...

    def exit(self) -> None: ...


class WindowFullscreen:
    """The widget is its own window: toggle its window state directly."""

    def __init__(self, widget: QWidget) -> None:
        self._widget = widget

    def is_fullscreen(self) -> bool:
        return self._widget.isFullScreen()

    def enter(self) -> None:
        self._widget.showFullScreen()

    def exit(self) -> None:
        self._widget.showNormal()


class DetachedFullscreen:
    """An embedded widget is promoted to a window while fullscreen."""

    PROPERTY = "detachedFullscreen"

    def __init__(self, widget: QWidget) -> None:
        self._widget = widget

    def is_fullscreen(self) -> bool:
        return self._widget.isWindow() and self._widget.isFullScreen()

    def enter(self) -> None:
        self._widget.setProperty(self.PROPERTY, True)
        self._widget.setWindowFlag(Qt.WindowType.Window, True)
        self._widget.showFullScreen()

    def exit(self) -> None:
        self._widget.setWindowFlag(Qt.WindowType.Window, False)
        self._widget.setProperty(self.PROPERTY, False)
        self._widget.showNormal()
        self._widget.show()


def probe_fullscreen(widget: QWidget) -> FullscreenBackend:
    """Pick the variant that fits how the widget is currently hosted."""
    if widget.property(DetachedFullscreen.PROPERTY):
        return DetachedFullscreen(widget)
    if widget.isWindow():
        return WindowFullscreen(widget)
    return DetachedFullscreen(widget)


def toggle_fullscreen(widget: QWidget) -> bool:
    """Flip fullscreen on ``widget`` and return the state actually reached.

    Failures are logged and the state is re-read from the widget; nothing is
    raised to the caller.
    """
    backend = probe_fullscreen(widget)
    wanted = not backend.is_fullscreen()
    try:
        if wanted:
            backend.enter()
        else:
            backend.exit()
    except (RuntimeError, OSError) as exc:
        logger.warning("Fullscreen request failed: {}", exc)
    reached = backend.is_fullscreen()
    if reached != wanted:
        logger.warning("Fullscreen {} was not honoured", "entry" if wanted else "exit")
    return reached
