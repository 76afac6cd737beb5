"""Event-kind keyed handler table installed as a single Qt event filter."""
from __future__ import annotations

from typing import Callable, Mapping, Optional

from loguru import logger
from PyQt6.QtCore import QEvent, QObject

Handler = Callable[[QEvent], bool]


class InputBindings(QObject):
    """Route events of the listed kinds from one watched object to handlers.

    A handler returns True to consume the event. Attaching and detaching
    install or remove the whole table at once.
    """

    def __init__(self, handlers: Mapping[QEvent.Type, Handler], parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._handlers = dict(handlers)
        self._target: Optional[QObject] = None

    @property
    def attached(self) -> bool:
        return self._target is not None

    @property
    def kinds(self) -> frozenset:
        return frozenset(self._handlers)

    def attach(self, target: QObject) -> None:
        if self._target is target:
            return
        self.detach()
        target.installEventFilter(self)
        self._target = target
        logger.debug("Bound {} input handlers to {}", len(self._handlers), type(target).__name__)

    def detach(self) -> None:
        target, self._target = self._target, None
        if target is not None:
            target.removeEventFilter(self)

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802
        if watched is self._target:
            handler = self._handlers.get(event.type())
            if handler is not None and handler(event):
                return True
        return super().eventFilter(watched, event)
