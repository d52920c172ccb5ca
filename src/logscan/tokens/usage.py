"""Token usage aggregation.

Folds normalized log entries into running totals, a per-model breakdown
and per-day (UTC) buckets.
"""

from dataclasses import dataclass, field
from datetime import timezone
from typing import Dict, Iterable, List, Any

from ..logs.types import LogEntry


@dataclass
class ModelTokenUsage:
    """Token consumption for a specific model."""

    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class TokenUsage:
    """Aggregated token counts across log entries."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_read_tokens: int = 0
    cache_create_tokens: int = 0
    total_tokens: int = 0
    by_model: Dict[str, ModelTokenUsage] = field(default_factory=dict)

    def add(self, entry: LogEntry) -> None:
        """Accumulate tokens from a log entry."""
        accumulate(self, entry)

    def merge(self, other: "TokenUsage") -> None:
        """Fold another usage value into this one, merging models by name."""
        self.input_tokens += other.input_tokens
        self.output_tokens += other.output_tokens
        self.cache_read_tokens += other.cache_read_tokens
        self.cache_create_tokens += other.cache_create_tokens
        self.total_tokens += other.total_tokens

        for name, theirs in other.by_model.items():
            mine = self.model_usage(name)
            mine.input_tokens += theirs.input_tokens
            mine.output_tokens += theirs.output_tokens
            mine.total_tokens += theirs.total_tokens

    def model_usage(self, name: str) -> ModelTokenUsage:
        """Find or create the bucket for a model."""
        mu = self.by_model.get(name)
        if mu is None:
            mu = ModelTokenUsage(model=name)
            self.by_model[name] = mu
        return mu

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "cache_read_tokens": self.cache_read_tokens,
            "cache_create_tokens": self.cache_create_tokens,
            "total_tokens": self.total_tokens,
            "by_model": {
                name: mu.to_dict() for name, mu in sorted(self.by_model.items())
            },
        }


@dataclass
class DailyUsage:
    """Token usage for one UTC calendar day."""

    date: str  # YYYY-MM-DD
    usage: TokenUsage = field(default_factory=TokenUsage)

    @property
    def by_model(self) -> Dict[str, ModelTokenUsage]:
        return self.usage.by_model

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, **self.usage.to_dict()}


def accumulate(usage: TokenUsage, entry: LogEntry) -> None:
    """Add one entry's counters to usage.

    Totals grow by the sum of the four component counters. Entries with
    no model count toward the totals only; cache counters are not broken
    out per model.
    """
    component_total = entry.calculate_total_tokens()

    usage.input_tokens += entry.input_tokens
    usage.output_tokens += entry.output_tokens
    usage.cache_read_tokens += entry.cache_read_tokens
    usage.cache_create_tokens += entry.cache_create_tokens
    usage.total_tokens += component_total

    if entry.model:
        mu = usage.model_usage(entry.model)
        mu.input_tokens += entry.input_tokens
        mu.output_tokens += entry.output_tokens
        mu.total_tokens += component_total


def aggregate(entries: Iterable[LogEntry]) -> TokenUsage:
    """Fold entries into a fresh TokenUsage."""
    usage = TokenUsage()
    for entry in entries:
        accumulate(usage, entry)
    return usage


def aggregate_by_day(entries: Iterable[LogEntry]) -> List[DailyUsage]:
    """Bucket entries by the UTC date of their timestamp.

    Entries without a timestamp are left out. Days are returned in
    ascending order; no timestamped entries gives an empty list.
    """
    days: Dict[str, DailyUsage] = {}

    for entry in entries:
        if entry.timestamp is None:
            continue
        ts = entry.timestamp
        if ts.tzinfo is not None:
            ts = ts.astimezone(timezone.utc)
        date = ts.date().isoformat()

        day = days.get(date)
        if day is None:
            day = DailyUsage(date=date)
            days[date] = day
        accumulate(day.usage, entry)

    return [days[date] for date in sorted(days)]
