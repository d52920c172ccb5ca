"""logscan Orchestrator - Multi-provider scanning.

Holds a registry of named provider scanners and fans a time-bounded scan
out across all of them:
1. Scan every registered provider (thread pool or sequentially)
2. Downgrade any provider failure to a tagged, counted result
3. Merge the entries into combined token usage
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from itertools import chain
from pathlib import Path
from typing import Optional, Dict, List

from .cancel import CancelToken
from .config import Config, load_config
from .logs import SCANNERS, LogScanner, ScanResult
from .tokens.usage import DailyUsage, TokenUsage, aggregate_by_day
from .utils.logging import JsonlLogger, set_level

logger = logging.getLogger(__name__)


class MultiScanner:
    """Registry of provider scanners with combined scanning."""

    def __init__(
        self,
        concurrent: bool = True,
        max_workers: int = 4,
        event_log: Optional[JsonlLogger] = None,
    ):
        """Initialize the orchestrator.

        Args:
            concurrent: Scan providers on a thread pool
            max_workers: Upper bound on pool threads
            event_log: Optional JSONL sink for scan events
        """
        self.concurrent = concurrent
        self.max_workers = max(1, max_workers)
        self.event_log = event_log
        self._scanners: Dict[str, LogScanner] = {}
        self._lock = threading.Lock()

    def register(self, name: str, scanner: LogScanner) -> None:
        """Register a scanner, replacing any previous one for name."""
        with self._lock:
            self._scanners[name] = scanner

    def providers(self) -> List[str]:
        """Registered provider names, sorted."""
        with self._lock:
            return sorted(self._scanners)

    def scanner(self, name: str) -> Optional[LogScanner]:
        """The scanner registered for name, or None."""
        with self._lock:
            return self._scanners.get(name)

    def _snapshot(self) -> Dict[str, LogScanner]:
        with self._lock:
            return dict(self._scanners)

    def _scan_one(
        self,
        name: str,
        scanner: LogScanner,
        ctx: Optional[CancelToken],
        since: Optional[datetime],
    ) -> ScanResult:
        """Scan one provider, never raising.

        A failed scan becomes an empty result with one parse error and the
        exception kept on result.error.
        """
        try:
            result = scanner.scan(ctx, None, since)
        except Exception as e:
            logger.warning("%s: scan failed: %s", name, e)
            if self.event_log:
                self.event_log.log_scan_failure(name, e)
            return ScanResult(
                provider=name,
                since=since,
                until=datetime.now(timezone.utc),
                parse_errors=1,
                error=e,
            )

        logger.debug(
            "%s: %d lines, %d parsed, %d errors",
            name, result.total_entries, result.parsed_entries, result.parse_errors,
        )
        if self.event_log:
            self.event_log.log_scan_result(result)
        return result

    def scan_all(
        self,
        ctx: Optional[CancelToken] = None,
        since: Optional[datetime] = None,
    ) -> Dict[str, ScanResult]:
        """Scan every registered provider in its default directory.

        Args:
            ctx: Cancellation token passed to every scan
            since: Lower time bound; None scans everything

        Returns:
            Dict of provider name to ScanResult, with a key for every
            registered provider even when its scan failed
        """
        scanners = self._snapshot()
        if self.event_log:
            self.event_log.log_scan_start(sorted(scanners), since)

        results: Dict[str, ScanResult] = {}

        if self.concurrent and len(scanners) > 1:
            workers = min(self.max_workers, len(scanners))
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    name: executor.submit(self._scan_one, name, scanner, ctx, since)
                    for name, scanner in scanners.items()
                }
                for name, future in futures.items():
                    results[name] = future.result()
        else:
            for name, scanner in scanners.items():
                results[name] = self._scan_one(name, scanner, ctx, since)

        return {name: results[name] for name in sorted(results)}

    def combined_token_usage(
        self,
        ctx: Optional[CancelToken] = None,
        since: Optional[datetime] = None,
    ) -> TokenUsage:
        """Token usage across all providers, models merged by name."""
        usage = TokenUsage()
        for result in self.scan_all(ctx, since).values():
            usage.merge(result.token_usage())
        return usage

    def combined_daily_usage(
        self,
        ctx: Optional[CancelToken] = None,
        since: Optional[datetime] = None,
    ) -> List[DailyUsage]:
        """Per-day token usage across all providers."""
        results = self.scan_all(ctx, since)
        return aggregate_by_day(chain.from_iterable(r.entries for r in results.values()))


def build_multi_scanner(config: Optional[Config] = None) -> MultiScanner:
    """Create a MultiScanner with the enabled built-in providers.

    Args:
        config: Configuration (defaults to load_config())
    """
    config = config or load_config()
    set_level(config.logging.level)

    event_log = None
    if config.logging.event_log:
        event_log = JsonlLogger(Path(str(config.logging.event_log)).expanduser())

    multi = MultiScanner(
        concurrent=config.scan.concurrent,
        max_workers=config.scan.max_workers,
        event_log=event_log,
    )

    for name in config.providers.enabled():
        scanner_cls = SCANNERS[name]
        log_dir = getattr(config.paths, name)
        if log_dir:
            log_dir = Path(str(log_dir)).expanduser()
        multi.register(name, scanner_cls(log_dir, max_line_bytes=config.scan.max_line_bytes))

    return multi
