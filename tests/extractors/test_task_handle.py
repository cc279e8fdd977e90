"""
Tests for background task handles.
"""
from __future__ import annotations

import threading

from extractors.workers import TaskHandle


class TestTaskHandle:
    """Tests for TaskHandle."""

    def test_runs_target_with_arguments(self):
        results = []
        handle = TaskHandle("unit", lambda a, b=0: results.append(a + b), 2, b=3).start()
        assert handle.join(timeout=5)
        assert results == [5]
        assert handle.error is None
        assert not handle.is_running

    def test_error_is_captured(self):
        def boom():
            raise RuntimeError("broken")

        handle = TaskHandle("boom", boom).start()
        assert handle.join(timeout=5)
        assert isinstance(handle.error, RuntimeError)

    def test_is_running_until_released(self):
        gate = threading.Event()
        handle = TaskHandle("gated", gate.wait).start()
        assert handle.is_running
        gate.set()
        assert handle.join(timeout=5)
