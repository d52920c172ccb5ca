"""Common log types shared by every provider.

Each provider writes its own JSONL shape, but every line is normalized to
a LogEntry:

  {"timestamp": "2025-01-10T12:00:00Z", "event": "response",
   "model": "gpt-4o", "usage": {"prompt_tokens": 100, ...}}

becomes

  LogEntry(timestamp=datetime(2025, 1, 10, 12, 0, tzinfo=utc),
           type="response", model="gpt-4o", input_tokens=100, ...)
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..tokens.usage import TokenUsage


@dataclass
class LogEntry:
    """A single normalized log line.

    Zero token counts mean "not reported". Empty strings mean the provider
    did not log that field.
    """

    timestamp: Optional[datetime] = None
    type: str = ""
    model: str = ""
    conversation_id: str = ""
    message_id: str = ""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_create_tokens: int = 0
    total_tokens: int = 0

    # Decoded line, kept for provider-specific callers
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    def calculate_total_tokens(self) -> int:
        """Sum of the four component counters."""
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_read_tokens
            + self.cache_create_tokens
        )


@dataclass
class ScanResult:
    """Parsed log data from one provider scan."""

    provider: str
    since: Optional[datetime] = None
    until: Optional[datetime] = None

    total_entries: int = 0    # Lines read
    parsed_entries: int = 0   # Lines kept
    parse_errors: int = 0     # Bad lines plus unreadable files

    entries: List[LogEntry] = field(default_factory=list)

    # Set by MultiScanner when the provider scan itself failed
    error: Optional[BaseException] = field(default=None, repr=False)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def token_usage(self) -> "TokenUsage":
        """Aggregate all entries into a single TokenUsage."""
        from ..tokens.usage import aggregate
        return aggregate(self.entries)

    def filter_by_model(self, model: str) -> List[LogEntry]:
        return [e for e in self.entries if e.model == model]

    def filter_by_type(self, entry_type: str) -> List[LogEntry]:
        return [e for e in self.entries if e.type == entry_type]

    def models(self) -> List[str]:
        """Unique non-empty model names, in first-seen order."""
        seen = []
        for entry in self.entries:
            if entry.model and entry.model not in seen:
                seen.append(entry.model)
        return seen

    def to_dict(self) -> Dict[str, Any]:
        """Counters and bounds, without the entries themselves."""
        return {
            "provider": self.provider,
            "since": self.since.isoformat() if self.since else None,
            "until": self.until.isoformat() if self.until else None,
            "total_entries": self.total_entries,
            "parsed_entries": self.parsed_entries,
            "parse_errors": self.parse_errors,
            "error": str(self.error) if self.error else None,
        }
