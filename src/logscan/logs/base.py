"""Provider schemas, the generic line parser and the directory scanner.

A provider is described entirely by data (a ProviderSchema): which keys
to try for each field, which nested objects to fall back to, and where
token usage lives. parse_line() applies a schema to one JSONL line and
LogScanner walks a log directory applying it to every line.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ..cancel import CancelToken
from ..errors import LineParseError, LineTooLongError, ScanError
from .extract import (
    TOKEN_ALIASES,
    apply_token_fields,
    extract_string,
    extract_timestamp,
    nested_objects,
)
from .types import LogEntry, ScanResult

logger = logging.getLogger(__name__)

# 1 MiB, enough for very long single-line JSON events
DEFAULT_MAX_LINE_BYTES = 1024 * 1024

KeyPath = Tuple[str, ...]
Fallback = Tuple[KeyPath, Tuple[str, ...]]


@dataclass(frozen=True)
class ProviderSchema:
    """Alias table for one provider's JSONL format.

    Each *_keys tuple is tried in order on the top-level object. Each
    *_fallbacks entry is (path to a nested object, keys to try there),
    consulted only when the top level produced nothing. usage_paths lists
    the nested containers holding token counts; the top-level object is
    always tried last.
    """

    name: str
    timestamp_keys: Tuple[str, ...] = ()
    timestamp_fallbacks: Tuple[Fallback, ...] = ()
    type_keys: Tuple[str, ...] = ()
    type_fallbacks: Tuple[Fallback, ...] = ()
    model_keys: Tuple[str, ...] = ()
    model_fallbacks: Tuple[Fallback, ...] = ()
    conversation_keys: Tuple[str, ...] = ()
    conversation_fallbacks: Tuple[Fallback, ...] = ()
    message_keys: Tuple[str, ...] = ()
    message_fallbacks: Tuple[Fallback, ...] = ()
    usage_paths: Tuple[KeyPath, ...] = ()
    token_aliases: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: dict(TOKEN_ALIASES))


def _first_string(raw: Dict[str, Any], keys: Tuple[str, ...], fallbacks: Tuple[Fallback, ...]) -> str:
    value = extract_string(raw, *keys)
    for path, nested_keys in fallbacks:
        if value:
            break
        for obj in nested_objects(raw, (path,)):
            value = extract_string(obj, *nested_keys)
    return value


def _first_timestamp(raw: Dict[str, Any], schema: ProviderSchema) -> Optional[datetime]:
    ts = extract_timestamp(raw, *schema.timestamp_keys)
    for path, keys in schema.timestamp_fallbacks:
        if ts is not None:
            break
        for obj in nested_objects(raw, (path,)):
            ts = extract_timestamp(obj, *keys)
    return ts


def parse_line(line: bytes, schema: ProviderSchema) -> LogEntry:
    """Normalize one JSONL line.

    Args:
        line: Raw line bytes, without the trailing newline
        schema: The provider's alias table

    Returns:
        LogEntry; fields the line does not carry stay empty/zero

    Raises:
        LineParseError: The line is not a JSON object
    """
    try:
        raw = json.loads(line)
    except (ValueError, RecursionError) as e:
        raise LineParseError(f"invalid JSON: {e}", line) from e

    if not isinstance(raw, dict):
        raise LineParseError(f"expected JSON object, got {type(raw).__name__}", line)

    entry = LogEntry(raw=raw)
    entry.timestamp = _first_timestamp(raw, schema)
    entry.type = _first_string(raw, schema.type_keys, schema.type_fallbacks)
    entry.model = _first_string(raw, schema.model_keys, schema.model_fallbacks)
    entry.conversation_id = _first_string(raw, schema.conversation_keys, schema.conversation_fallbacks)
    entry.message_id = _first_string(raw, schema.message_keys, schema.message_fallbacks)

    # Nested usage containers first, then the line itself
    for obj in nested_objects(raw, schema.usage_paths + ((),)):
        apply_token_fields(entry, obj, schema.token_aliases)

    if entry.total_tokens == 0:
        entry.total_tokens = entry.calculate_total_tokens()

    return entry


def iter_lines(f: BinaryIO, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES) -> Iterator[bytes]:
    """Yield lines without line endings, refusing lines over max_line_bytes.

    The limit applies to the line content; a "\\r\\n" ending does not count
    against it.
    """
    # Room for the content plus a two-byte "\r\n" ending
    limit = max_line_bytes + 2
    while True:
        chunk = f.readline(limit)
        if not chunk:
            return
        if len(chunk) == limit and not chunk.endswith(b"\n"):
            raise LineTooLongError(f"line exceeds {max_line_bytes} bytes")
        line = chunk.rstrip(b"\r\n")
        if len(line) > max_line_bytes:
            raise LineTooLongError(f"line exceeds {max_line_bytes} bytes")
        yield line


def _as_utc(when: Optional[datetime]) -> Optional[datetime]:
    if when is None or when.tzinfo is not None:
        return when
    return when.replace(tzinfo=timezone.utc)


class LogScanner:
    """Scans one provider's JSONL log directory.

    Subclasses set `schema`, and optionally `suffix` (only files ending in
    it are read) and `subdir_depth` (how many directory levels below the
    log directory hold log files).
    """

    schema: ProviderSchema = ProviderSchema(name="base")
    suffix: Optional[str] = None
    subdir_depth: int = 0

    def __init__(self, log_dir: Union[str, Path, None] = None, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES):
        """Initialize the scanner.

        Args:
            log_dir: Log directory. Defaults to the provider's standard
                     location, resolved once here.
            max_line_bytes: Longest line accepted before a file is abandoned
        """
        if log_dir is None or log_dir == "":
            self.log_dir = self.default_log_dir()
        else:
            self.log_dir = Path(log_dir)
        self.max_line_bytes = max_line_bytes

    @property
    def provider(self) -> str:
        return self.schema.name

    @classmethod
    def default_log_dir(cls) -> Path:
        raise NotImplementedError("Subclasses must implement default_log_dir()")

    def parse_line(self, line: bytes) -> LogEntry:
        return parse_line(line, self.schema)

    def scan(
        self,
        ctx: Optional[CancelToken] = None,
        log_dir: Union[str, Path, None] = None,
        since: Optional[datetime] = None,
    ) -> ScanResult:
        """Parse logs written since the given time.

        Args:
            ctx: Cancellation token, checked between files and lines
            log_dir: Directory to scan instead of the configured one
            since: Lower time bound; None scans everything

        Returns:
            ScanResult for this provider

        Raises:
            ScanCancelled: ctx was cancelled (carries the partial result)
            ScanError: The directory could not be listed (carries the
                       partial result)
        """
        ctx = ctx or CancelToken()
        directory = Path(log_dir) if log_dir else self.log_dir
        since = _as_utc(since)

        result = ScanResult(
            provider=self.provider,
            since=since,
            until=datetime.now(timezone.utc),
        )

        try:
            files = self._list_files(directory, self.subdir_depth)
        except FileNotFoundError:
            logger.debug("%s: no log directory at %s", self.provider, directory)
            return result
        except OSError as e:
            raise ScanError(self.provider, f"cannot list {directory}: {e}", result) from e

        for path in files:
            ctx.check(self.provider, result)

            try:
                mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            except OSError as e:
                logger.debug("%s: cannot stat %s: %s", self.provider, path, e)
                result.parse_errors += 1
                continue

            if since is not None and mtime < since:
                continue

            try:
                self._scan_file(ctx, path, since, result)
            except (OSError, LineTooLongError) as e:
                logger.debug("%s: abandoning %s: %s", self.provider, path, e)
                result.parse_errors += 1

        return result

    def _list_files(self, directory: Path, depth: int) -> List[Path]:
        """Log files directly in directory (and `depth` levels below it)."""
        files = []
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)

        for entry in entries:
            if entry.is_dir():
                if depth > 0:
                    try:
                        files.extend(self._list_files(Path(entry.path), depth - 1))
                    except OSError as e:
                        logger.debug("%s: cannot list %s: %s", self.provider, entry.path, e)
                continue
            if self.suffix and not entry.name.endswith(self.suffix):
                continue
            files.append(Path(entry.path))
        return files

    def _scan_file(self, ctx: CancelToken, path: Path, since: Optional[datetime], result: ScanResult) -> None:
        with open(path, "rb") as f:
            lines = iter_lines(f, self.max_line_bytes)
            while True:
                ctx.check(self.provider, result)
                line = next(lines, None)
                if line is None:
                    return

                result.total_entries += 1

                try:
                    entry = self.parse_line(line)
                except LineParseError as e:
                    logger.debug("%s: %s line %d: %s", self.provider, path.name, result.total_entries, e)
                    result.parse_errors += 1
                    continue

                if since is not None and entry.timestamp is not None and entry.timestamp < since:
                    continue

                result.entries.append(entry)
                result.parsed_entries += 1
