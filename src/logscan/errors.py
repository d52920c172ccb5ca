"""logscan error types.

Every failure that can leave a scan carries whatever partial result was
built before it happened, so callers can still report on it.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .logs.types import ScanResult


class LogScanError(Exception):
    """Base class for logscan errors."""


class LineParseError(LogScanError):
    """A single log line could not be decoded into an object."""

    def __init__(self, message: str, line: bytes = b""):
        super().__init__(message)
        self.line = line


class LineTooLongError(LogScanError):
    """A line exceeded the scanner's per-line buffer; its file is abandoned."""


class ScanError(LogScanError):
    """Scanning a provider's log directory failed."""

    def __init__(self, provider: str, message: str, result: Optional["ScanResult"] = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.result = result


class ScanCancelled(LogScanError):
    """The scan was cancelled before it finished."""

    def __init__(self, provider: str, result: Optional["ScanResult"] = None):
        super().__init__(f"{provider}: scan cancelled")
        self.provider = provider
        self.result = result


class ConfigError(LogScanError):
    """An explicitly requested config file could not be used."""
