"""
Background worker threads for engine tasks.
"""

from __future__ import annotations

import threading
import traceback
from typing import Any, Callable, Optional

from core.logging import get_logger

LOGGER = get_logger("extractors.workers")


class TaskHandle:
    """
    Handle to one engine task running on a daemon thread.

    Callers that want the synchronous behaviour call ``join()``; everything
    else polls ``is_running`` or simply drops the handle. Exceptions raised by
    the task body are logged and kept on ``error``.

    Usage:
        handle = TaskHandle("refresh", engine._refresh_body, Category.ALL)
        handle.start()
        handle.join()
    """

    def __init__(self, name: str, target: Callable[..., Any], *args: Any, **kwargs: Any):
        self.name = name
        self.error: Optional[BaseException] = None
        self._target = target
        self._args = args
        self._kwargs = kwargs
        self._thread = threading.Thread(target=self._run, name=f"cachesifter-{name}", daemon=True)

    def _run(self) -> None:
        try:
            self._target(*self._args, **self._kwargs)
        except Exception as exc:
            self.error = exc
            LOGGER.error("Task %s failed: %s\n%s", self.name, exc, traceback.format_exc())

    def start(self) -> "TaskHandle":
        self._thread.start()
        return self

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the task. Returns True once it has finished."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()
