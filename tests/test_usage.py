"""Tests for token usage aggregation."""

from datetime import datetime, timedelta, timezone
from itertools import permutations

from logscan.logs.types import LogEntry, ScanResult
from logscan.tokens import TokenUsage, aggregate, aggregate_by_day


def entry(model="", ts=None, **tokens) -> LogEntry:
    e = LogEntry(model=model, timestamp=ts, **tokens)
    if not e.total_tokens:
        e.total_tokens = e.calculate_total_tokens()
    return e


class TestTokenUsage:
    """Tests for accumulation into TokenUsage."""

    def test_add_single_entry(self):
        usage = TokenUsage()
        usage.add(entry("gpt-4o", input_tokens=100, output_tokens=200))

        assert usage.input_tokens == 100
        assert usage.output_tokens == 200
        assert usage.total_tokens == 300
        assert usage.by_model["gpt-4o"].total_tokens == 300

    def test_totals_use_component_sum(self):
        """An explicit total on the line does not change the aggregate."""
        usage = aggregate([entry("m", input_tokens=10, output_tokens=20, total_tokens=100)])
        assert usage.total_tokens == 30
        assert usage.by_model["m"].total_tokens == 30

    def test_cache_counters_in_total_not_in_model(self):
        usage = aggregate([entry("m", input_tokens=1, cache_read_tokens=40, cache_create_tokens=5)])
        assert usage.cache_read_tokens == 40
        assert usage.cache_create_tokens == 5
        assert usage.total_tokens == 46
        mu = usage.by_model["m"]
        assert (mu.input_tokens, mu.output_tokens, mu.total_tokens) == (1, 0, 46)

    def test_empty_model_counts_toward_totals_only(self):
        usage = aggregate([entry(input_tokens=7), entry("named", input_tokens=3)])
        assert usage.input_tokens == 10
        assert list(usage.by_model) == ["named"]

    def test_models_accumulate_separately(self):
        usage = aggregate([
            entry("a", input_tokens=1, output_tokens=1),
            entry("b", input_tokens=10),
            entry("a", output_tokens=5),
        ])
        assert usage.by_model["a"].total_tokens == 7
        assert usage.by_model["b"].total_tokens == 10
        assert usage.total_tokens == 17

    def test_order_independent(self):
        entries = [
            entry("a", input_tokens=1, output_tokens=2),
            entry("b", cache_read_tokens=3),
            entry("", output_tokens=4),
        ]
        expected = aggregate(entries).to_dict()
        for ordering in permutations(entries):
            assert aggregate(ordering).to_dict() == expected

    def test_aggregate_empty(self):
        usage = aggregate([])
        assert usage.total_tokens == 0
        assert usage.by_model == {}

    def test_merge(self):
        left = aggregate([entry("shared", input_tokens=100), entry("left", output_tokens=5)])
        right = aggregate([entry("shared", output_tokens=50), entry("right", cache_read_tokens=9)])

        left.merge(right)

        assert left.total_tokens == 164
        assert left.cache_read_tokens == 9
        assert set(left.by_model) == {"shared", "left", "right"}
        shared = left.by_model["shared"]
        assert (shared.input_tokens, shared.output_tokens, shared.total_tokens) == (100, 50, 150)

    def test_to_dict_sorts_models(self):
        usage = aggregate([entry("zeta", input_tokens=1), entry("alpha", input_tokens=2)])
        data = usage.to_dict()
        assert list(data["by_model"]) == ["alpha", "zeta"]
        assert data["by_model"]["alpha"] == {
            "model": "alpha", "input_tokens": 2, "output_tokens": 0, "total_tokens": 2,
        }


class TestAggregateByDay:
    """Tests for per-day bucketing."""

    def test_ascending_days(self):
        day1 = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)
        day2 = day1 + timedelta(days=1)
        days = aggregate_by_day([
            entry("m", day2, input_tokens=5),
            entry("m", day1, input_tokens=1),
            entry("m", day1 + timedelta(hours=3), output_tokens=2),
        ])

        assert [d.date for d in days] == ["2025-01-10", "2025-01-11"]
        assert days[0].usage.total_tokens == 3
        assert days[1].usage.total_tokens == 5
        assert days[0].by_model["m"].total_tokens == 3

    def test_untimed_entries_excluded(self):
        days = aggregate_by_day([entry("m", None, input_tokens=99)])
        assert days == []

    def test_offset_converted_to_utc_date(self):
        # 01:30 at +05:00 is still the previous day in UTC
        ts = datetime(2025, 1, 11, 1, 30, tzinfo=timezone(timedelta(hours=5)))
        days = aggregate_by_day([entry("m", ts, input_tokens=1)])
        assert [d.date for d in days] == ["2025-01-10"]

    def test_days_sum_to_total(self):
        base = datetime(2025, 3, 1, tzinfo=timezone.utc)
        entries = [entry("m", base + timedelta(hours=10 * i), input_tokens=i + 1) for i in range(10)]
        days = aggregate_by_day(entries)
        assert sum(d.usage.total_tokens for d in days) == aggregate(entries).total_tokens

    def test_to_dict(self):
        ts = datetime(2025, 1, 10, tzinfo=timezone.utc)
        data = aggregate_by_day([entry("m", ts, input_tokens=4)])[0].to_dict()
        assert data["date"] == "2025-01-10"
        assert data["total_tokens"] == 4


class TestScanResultHelpers:
    """Tests for the ScanResult convenience methods."""

    def make_result(self) -> ScanResult:
        return ScanResult(
            provider="codex",
            total_entries=4,
            parsed_entries=3,
            parse_errors=1,
            entries=[
                LogEntry(model="gpt-4o", type="response", input_tokens=10),
                LogEntry(model="", type="request"),
                LogEntry(model="o3", type="response", output_tokens=20),
                LogEntry(model="gpt-4o", type="response", output_tokens=1),
            ],
        )

    def test_token_usage(self):
        usage = self.make_result().token_usage()
        assert usage.total_tokens == 31
        assert usage.by_model["gpt-4o"].total_tokens == 11

    def test_filters(self):
        result = self.make_result()
        assert len(result.filter_by_model("gpt-4o")) == 2
        assert len(result.filter_by_type("request")) == 1
        assert result.filter_by_model("missing") == []

    def test_models_first_seen_order(self):
        assert self.make_result().models() == ["gpt-4o", "o3"]

    def test_to_dict(self):
        result = self.make_result()
        data = result.to_dict()
        assert data["provider"] == "codex"
        assert data["since"] is None
        assert (data["total_entries"], data["parsed_entries"], data["parse_errors"]) == (4, 3, 1)
        assert data["error"] is None
        assert "entries" not in data

    def test_failed(self):
        result = ScanResult(provider="gemini", parse_errors=1, error=RuntimeError("boom"))
        assert result.failed
        assert result.to_dict()["error"] == "boom"
        assert not self.make_result().failed
