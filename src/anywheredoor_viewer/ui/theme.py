"""Application-wide theme helpers."""
from __future__ import annotations

from PyQt6.QtGui import QColor, QPalette

PLAYER_STYLESHEET = """
QWidget#playerControls {
    background-color: rgba(0, 0, 0, 190);
}
QWidget#playerControls QLabel {
    color: #f0f0f0;
}
QWidget#playerControls QToolButton {
    border: none;
    padding: 4px;
}
QWidget#playerControls QToolButton:hover {
    background-color: rgba(255, 255, 255, 30);
    border-radius: 4px;
}
QLabel#playerOverlay {
    color: white;
    font-size: 18px;
    background-color: rgba(0, 0, 0, 128);
    padding: 12px 18px;
    border-radius: 6px;
}
QLabel#playerOverlay[error="true"] {
    background-color: rgba(140, 20, 20, 200);
}
"""


def build_dark_palette() -> QPalette:
    palette = QPalette()
    palette.setColor(QPalette.ColorRole.Window, QColor(18, 18, 20))
    palette.setColor(QPalette.ColorRole.WindowText, QColor(225, 225, 225))
    palette.setColor(QPalette.ColorRole.Base, QColor(12, 12, 14))
    palette.setColor(QPalette.ColorRole.AlternateBase, QColor(28, 29, 33))
    palette.setColor(QPalette.ColorRole.Text, QColor(235, 235, 235))
    palette.setColor(QPalette.ColorRole.Button, QColor(36, 38, 43))
    palette.setColor(QPalette.ColorRole.ButtonText, QColor(235, 235, 235))
    palette.setColor(QPalette.ColorRole.Highlight, QColor(37, 99, 235))
    palette.setColor(QPalette.ColorRole.HighlightedText, QColor(255, 255, 255))
    return palette


def apply_dark_theme(app) -> None:
    """Dark Fusion palette plus styling for the player chrome."""
    app.setStyle("Fusion")
    app.setPalette(build_dark_palette())
    app.setStyleSheet(PLAYER_STYLESHEET)
