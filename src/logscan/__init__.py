"""logscan - Token usage from AI command-line tool logs.

Reads the JSONL activity logs written by Codex CLI, Gemini CLI and Claude
Code, normalizes every line to a common LogEntry and aggregates token
usage per model and per day.
"""

from .cancel import CancelToken
from .config import Config, load_config
from .errors import LogScanError, LineParseError, LineTooLongError, ScanError, ScanCancelled, ConfigError
from .logs import (
    LogEntry,
    ScanResult,
    LogScanner,
    CodexScanner,
    GeminiScanner,
    ClaudeScanner,
)
from .orchestrator import MultiScanner, build_multi_scanner
from .tokens import TokenUsage, ModelTokenUsage, DailyUsage, aggregate, aggregate_by_day

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "Config",
    "load_config",
    "LogScanError",
    "LineParseError",
    "LineTooLongError",
    "ScanError",
    "ScanCancelled",
    "ConfigError",
    "LogEntry",
    "ScanResult",
    "LogScanner",
    "CodexScanner",
    "GeminiScanner",
    "ClaudeScanner",
    "MultiScanner",
    "build_multi_scanner",
    "TokenUsage",
    "ModelTokenUsage",
    "DailyUsage",
    "aggregate",
    "aggregate_by_day",
]
