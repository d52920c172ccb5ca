"""Cancellation signal shared between a caller and running scans."""

import threading
from typing import Optional

from .errors import ScanCancelled


class CancelToken:
    """Thread-safe, one-way cancellation flag.

    A caller keeps the token and calls cancel() (from any thread, or from a
    threading.Timer to build a deadline). Scans poll it between files and
    between lines.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self, provider: str, result=None) -> None:
        """Raise ScanCancelled with the partial result if cancelled."""
        if self._event.is_set():
            raise ScanCancelled(provider, result)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout elapses."""
        return self._event.wait(timeout)
