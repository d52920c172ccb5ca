"""logscan Token subsystem - Usage aggregation."""

from .usage import (
    TokenUsage,
    ModelTokenUsage,
    DailyUsage,
    accumulate,
    aggregate,
    aggregate_by_day,
)

__all__ = [
    "TokenUsage",
    "ModelTokenUsage",
    "DailyUsage",
    "accumulate",
    "aggregate",
    "aggregate_by_day",
]
