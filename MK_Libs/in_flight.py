"""
In-flight guard shared by the capture, crop and enhance stages.

A stage wraps each user-triggered action in its guard; a second invocation
while the first is still running is rejected instead of queued.
"""

import threading
from contextlib import contextmanager
from typing import Iterator

from MK_Libs.errors import CaptureInProgressError


class InFlightGuard:
    """Non-blocking lock that rejects re-entrant stage actions."""

    def __init__(self, stage_name: str):
        self.stage_name = stage_name
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise CaptureInProgressError(f"{self.stage_name} already in progress")
        try:
            yield
        finally:
            self._lock.release()
