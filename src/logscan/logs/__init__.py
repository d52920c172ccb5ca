"""Provider log scanners - Parse AI CLI JSONL logs into common entries."""

from .types import LogEntry, ScanResult
from .base import LogScanner, ProviderSchema, parse_line
from .codex import CodexScanner, CODEX_SCHEMA
from .gemini import GeminiScanner, GEMINI_SCHEMA
from .claude import ClaudeScanner, CLAUDE_SCHEMA

# Built-in providers by name
SCANNERS = {
    "codex": CodexScanner,
    "gemini": GeminiScanner,
    "claude": ClaudeScanner,
}

__all__ = [
    "LogEntry",
    "ScanResult",
    "LogScanner",
    "ProviderSchema",
    "parse_line",
    "CodexScanner",
    "GeminiScanner",
    "ClaudeScanner",
    "CODEX_SCHEMA",
    "GEMINI_SCHEMA",
    "CLAUDE_SCHEMA",
    "SCANNERS",
]
