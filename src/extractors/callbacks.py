"""
Callback interface for source progress reporting.
"""

from typing import Protocol


class SourceCallbacks(Protocol):
    """
    Callback interface for progress reporting from asset sources.

    Sources call these methods while enumerating or clearing. The engine
    implements them to update its progress, status and cancellation state;
    tests use small synchronous recorders.
    """

    def on_progress(self, current: int, total: int, message: str = "") -> None:
        """
        Report progress.

        Args:
            current: Items processed so far
            total: Total items
            message: Optional locale key describing the step

        Example:
            callbacks.on_progress(1, 2, "deleting-files")
        """
        ...

    def on_error(self, error: str, details: str = "") -> None:
        """
        Report an error.

        Args:
            error: Locale key of the error message
            details: Detailed error information

        Example:
            callbacks.on_error("failed-deleting-file", str(exc))
        """
        ...

    def is_cancelled(self) -> bool:
        """
        Check if the running pass should stop.

        Returns:
            True if operation should stop
        """
        ...


class NullCallbacks:
    """Callbacks that ignore progress and are never cancelled."""

    def on_progress(self, current: int, total: int, message: str = "") -> None:
        pass

    def on_error(self, error: str, details: str = "") -> None:
        pass

    def is_cancelled(self) -> bool:
        return False
