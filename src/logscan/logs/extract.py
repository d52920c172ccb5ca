"""Field extraction helpers for loosely-typed JSON log lines.

Providers disagree on almost everything: timestamps arrive as RFC3339
strings, epoch seconds, milliseconds, microseconds or nanoseconds (as
numbers or numeric strings), and token counts hide under a dozen key
names at different depths. Everything here is tolerant: a value of the
wrong shape yields None/""/0, never an exception.
"""

import math
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Magnitude cutoffs for unit inference of numeric epoch values.
NANOS_THRESHOLD = 1e18
MICROS_THRESHOLD = 1e15
MILLIS_THRESHOLD = 1e12

# Anything beyond this is outside the datetime range
_MAX_MICROS = 1e20

_RFC3339_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T"
    r"([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.([0-9]+))?"
    r"(Z|[+-][0-9]{2}:[0-9]{2})"
)
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

# Token counter aliases shared by providers (field -> ordered keys)
TOKEN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "input_tokens": ("input_tokens", "inputTokens", "prompt_tokens", "promptTokens"),
    "output_tokens": ("output_tokens", "outputTokens", "completion_tokens", "completionTokens"),
    "cache_read_tokens": ("cache_read_tokens", "cacheReadTokens", "cache_read_input_tokens"),
    "cache_create_tokens": (
        "cache_create_tokens",
        "cacheCreateTokens",
        "cache_creation_tokens",
        "cacheCreationTokens",
    ),
    "total_tokens": ("total_tokens", "totalTokens"),
}


def _parse_rfc3339(value: str) -> Optional[datetime]:
    """Parse RFC3339 with or without fractional seconds, as UTC."""
    m = _RFC3339_RE.fullmatch(value)
    if not m:
        return None

    year, month, day, hour, minute, second, frac, offset = m.groups()
    # datetime keeps microseconds; extra digits are truncated
    micro = int((frac or "0")[:6].ljust(6, "0"))

    try:
        if offset == "Z":
            tz = timezone.utc
        else:
            sign = -1 if offset[0] == "-" else 1
            tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6])))
        parsed = datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), micro,
            tzinfo=tz,
        )
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def _from_epoch(value: Any) -> Optional[datetime]:
    """Convert an epoch number of unknown unit to a UTC datetime.

    > 1e18 is nanoseconds, > 1e15 microseconds, > 1e12 milliseconds,
    anything else seconds (fraction kept as sub-second precision).
    """
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Decimal) and not value.is_finite():
        return None
    if isinstance(value, int):
        value = Decimal(value)

    if value > NANOS_THRESHOLD:
        micros = value / 1000
    elif value > MICROS_THRESHOLD:
        micros = value
    elif value > MILLIS_THRESHOLD:
        micros = value * 1000
    else:
        micros = value * 1_000_000

    if abs(micros) > _MAX_MICROS:
        return None
    if isinstance(micros, Decimal):
        micros = int(micros)

    try:
        return EPOCH + timedelta(microseconds=micros)
    except OverflowError:
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse any supported timestamp encoding.

    Args:
        value: A decoded JSON value

    Returns:
        Timezone-aware UTC datetime, or None if the value is empty,
        unparseable or of an unsupported type.
    """
    # bool is an int subclass; JSON true/false is never a time
    if isinstance(value, bool):
        return None

    if isinstance(value, str):
        if not value:
            return None
        parsed = _parse_rfc3339(value)
        if parsed is not None:
            return parsed
        if _DECIMAL_RE.fullmatch(value):
            return _from_epoch(Decimal(value))
        return None

    if isinstance(value, (int, float, Decimal)):
        return _from_epoch(value)

    return None


def as_int(value: Any) -> Optional[int]:
    """Coerce a JSON value to int, or None when it cannot be."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        return int(value)
    if isinstance(value, str) and _INTEGER_RE.fullmatch(value):
        return int(value)
    return None


def as_object(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


class Node:
    """A JSON value of unknown shape with safe accessors.

    Lookups through missing keys or non-objects produce an empty Node
    instead of raising, so nested paths can be chained freely:

        Node(raw).at("response", "usage").as_object()
    """

    __slots__ = ("value",)

    def __init__(self, value: Any = None):
        self.value = value

    @property
    def present(self) -> bool:
        return self.value is not None

    def get(self, key: str) -> "Node":
        obj = as_object(self.value)
        if obj is None:
            return Node()
        return Node(obj.get(key))

    def at(self, *path: str) -> "Node":
        node = self
        for key in path:
            node = node.get(key)
        return node

    def as_object(self) -> Optional[Dict[str, Any]]:
        return as_object(self.value)

    def as_string(self) -> Optional[str]:
        return self.value if isinstance(self.value, str) else None

    def as_integer(self) -> Optional[int]:
        return as_int(self.value)

    def as_timestamp(self) -> Optional[datetime]:
        return parse_timestamp(self.value)

    def __repr__(self) -> str:
        return f"Node({self.value!r})"


def extract_string(obj: Mapping[str, Any], *keys: str) -> str:
    """First non-empty string value among keys, else ""."""
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def extract_int(obj: Mapping[str, Any], *keys: str) -> int:
    """First value among keys that coerces to int, else 0."""
    for key in keys:
        if key not in obj:
            continue
        n = as_int(obj[key])
        if n is not None:
            return n
    return 0


def extract_timestamp(obj: Mapping[str, Any], *keys: str) -> Optional[datetime]:
    """First value among keys that parses as a timestamp, else None."""
    for key in keys:
        if key not in obj:
            continue
        ts = parse_timestamp(obj[key])
        if ts is not None:
            return ts
    return None


def nested_objects(raw: Mapping[str, Any], paths: Sequence[Sequence[str]]) -> Iterator[Dict[str, Any]]:
    """Yield the sub-objects found at each path, in order.

    An empty path is the top-level object itself. Paths that are missing
    or do not lead to an object are skipped.
    """
    root = Node(raw)
    for path in paths:
        obj = root.at(*path).as_object()
        if obj is not None:
            yield obj


def apply_token_fields(entry: Any, obj: Mapping[str, Any], aliases: Mapping[str, Sequence[str]] = TOKEN_ALIASES) -> None:
    """Fill zero token counters on entry from obj.

    Counters that are already non-zero are left alone, so the first
    container that reports a field wins.
    """
    for attr, keys in aliases.items():
        if getattr(entry, attr) == 0:
            setattr(entry, attr, extract_int(obj, *keys))
