"""Live state of one mounted viewer."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class ViewerSession:
    """UI-facing playback state owned by a single ViewerController."""

    source_url: str
    autoplay: bool = False
    show_controls: bool = True
    playing: bool = False
    loading: bool = True
    current_time: float = 0.0  # seconds
    duration: float = 0.0  # seconds, 0 until metadata is known
    volume: float = 1.0
    fullscreen: bool = False
    error: Optional[str] = None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def fail(self, message: str) -> None:
        self.error = message
        self.loading = False
        self.playing = False
