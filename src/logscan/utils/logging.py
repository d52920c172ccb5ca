"""logscan Logging Utilities.

Diagnostic logging goes through the standard logging module under the
"logscan" logger. Scan events can additionally be appended to a JSONL
file for later inspection.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any, Union

from ..logs.types import ScanResult

LOGGER_NAME = "logscan"

_handler: Optional[logging.Handler] = None


def set_level(level: Union[str, int]) -> logging.Logger:
    """Set the package logger level; unknown level names mean WARNING."""
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)
    return logger


def configure_logging(level: Union[str, int] = "WARNING") -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Safe to call more than once; only one handler is ever installed.
    """
    global _handler

    logger = set_level(level)

    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(_handler)

    return logger


class JsonlLogger:
    """Append-only JSONL logger for scan events."""

    def __init__(self, log_path: Path):
        self.log_path = Path(log_path)
        self._ensure_dir()

    def _ensure_dir(self) -> None:
        """Ensure log directory exists."""
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, event: str, data: Optional[Dict[str, Any]] = None) -> None:
        """Log an event with optional data.

        Args:
            event: Event type (e.g., "scan_start", "scan_result")
            data: Optional event data
        """
        entry = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "event": event,
            "pid": os.getpid(),
        }

        if data:
            entry.update(data)

        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except IOError:
            pass  # Best effort logging

    def log_scan_start(self, providers: list, since: Optional[datetime]) -> None:
        """Log the start of a multi-provider scan."""
        self.log("scan_start", {
            "providers": providers,
            "since": since.isoformat() if since else None,
        })

    def log_scan_result(self, result: ScanResult) -> None:
        """Log the counters of one provider scan."""
        self.log("scan_result", result.to_dict())

    def log_scan_failure(self, provider: str, error: BaseException) -> None:
        """Log a provider scan that failed outright."""
        self.log("scan_failure", {
            "provider": provider,
            "error": str(error),
            "error_type": type(error).__name__,
        })

    def read_recent(self, n: int = 50) -> list:
        """Read the last N log entries."""
        if not self.log_path.exists():
            return []

        entries = []
        try:
            with open(self.log_path, "r", encoding="utf-8") as f:
                lines = f.readlines()
                for line in lines[-n:]:
                    try:
                        entries.append(json.loads(line))
                    except json.JSONDecodeError:
                        continue
        except IOError:
            pass

        return entries
