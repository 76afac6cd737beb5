"""Run blocking calls (catalogue requests) off the GUI thread."""
from __future__ import annotations

import traceback
from typing import Any, Callable, Optional

from loguru import logger
from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal


class TaskSignals(QObject):
    """Delivered on the GUI thread through queued connections."""

    finished = pyqtSignal(object)
    failed = pyqtSignal(str)


class FunctionTask(QRunnable):
    """Wrap a callable for execution in the Qt thread pool."""

    def __init__(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = TaskSignals()
        self.setAutoDelete(False)

    def run(self) -> None:
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as exc:  # noqa: BLE001
            logger.debug("Task {} failed:\n{}", getattr(self.fn, "__name__", self.fn), traceback.format_exc())
            self.signals.failed.emit(str(exc))
        else:
            self.signals.finished.emit(result)


class TaskRunner:
    """Submit tasks and keep them alive until they report back."""

    def __init__(self, max_threads: Optional[int] = None) -> None:
        self._pool = QThreadPool.globalInstance()
        if max_threads is not None:
            self._pool.setMaxThreadCount(max_threads)
        self._active: set[FunctionTask] = set()

    @property
    def active_count(self) -> int:
        return len(self._active)

    def submit(
        self,
        task: FunctionTask,
        on_finished: Optional[Callable[[Any], None]] = None,
        on_failed: Optional[Callable[[str], None]] = None,
    ) -> FunctionTask:
        self._active.add(task)
        task.signals.finished.connect(lambda result, t=task: self._done(t, result, on_finished))
        if on_failed is None:
            on_failed = _log_failure
        task.signals.failed.connect(lambda message, t=task: self._done(t, message, on_failed))
        self._pool.start(task)
        return task

    def wait(self, msecs: int = -1) -> bool:
        return self._pool.waitForDone(msecs)

    def _done(self, task: FunctionTask, payload: Any, callback: Optional[Callable[[Any], None]]) -> None:
        self._active.discard(task)
        if callback is not None:
            callback(payload)


def _log_failure(message: str) -> None:
    logger.error("Background task failed: {}", message)
