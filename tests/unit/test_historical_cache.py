"""
Unit tests for HistoricalSeriesCache.

Tests cover:
- Incremental merge semantics (append-only, idempotent, ordered)
- needs_update on the weekday calendar
- Period filtering at read time
- Full replacement with set()
- clear_old_entries, stats and malformed persisted data
"""

from datetime import date

import pytest

from market_cache.core.exceptions import ValidationError
from market_cache.domain.models import AssetInfo
from market_cache.repositories import JsonFileStore
from market_cache.services import HistoricalSeriesCache
from market_cache.services.historical_cache import missing_trading_days, normalize_points

from tests.conftest import bar


def closes(cache: HistoricalSeriesCache, symbol: str) -> list[tuple[str, float]]:
    record = cache.get_record(symbol)
    return [(p.date.isoformat(), p.close) for p in record.points]


# =============================================================================
# INCREMENTAL UPDATE TESTS
# =============================================================================


class TestUpdateIncremental:
    """Tests for update_incremental."""

    def test_empty_cache_stores_batch(self, historical_cache: HistoricalSeriesCache):
        """
        GIVEN an empty series cache
        WHEN AAPL is updated with bars for 2024-01-02 and 2024-01-03
        THEN exactly those two points are stored and last_date is 2024-01-03
        """
        added = historical_cache.update_incremental(
            "AAPL", [bar("2024-01-02", 100), bar("2024-01-03", 101)]
        )

        record = historical_cache.get_record("AAPL")
        assert added == 2
        assert closes(historical_cache, "AAPL") == [("2024-01-02", 100), ("2024-01-03", 101)]
        assert record.last_date == date(2024, 1, 3)

    def test_existing_dates_are_never_rewritten(self, historical_cache: HistoricalSeriesCache):
        """
        GIVEN AAPL stored through 2024-01-03 at close 101
        WHEN an update repeats 2024-01-03 at 999 and adds 2024-01-04
        THEN only 2024-01-04 is appended and 2024-01-03 keeps 101
        """
        historical_cache.update_incremental("AAPL", [bar("2024-01-02", 100), bar("2024-01-03", 101)])

        added = historical_cache.update_incremental(
            "AAPL", [bar("2024-01-03", 999), bar("2024-01-04", 102)]
        )

        assert added == 1
        assert closes(historical_cache, "AAPL") == [
            ("2024-01-02", 100),
            ("2024-01-03", 101),
            ("2024-01-04", 102),
        ]

    def test_replaying_a_batch_is_a_no_op(self, historical_cache: HistoricalSeriesCache):
        batch = [bar("2024-01-02", 100), bar("2024-01-03", 101)]
        historical_cache.update_incremental("AAPL", batch)
        before = closes(historical_cache, "AAPL")

        assert historical_cache.update_incremental("AAPL", batch) == 0
        assert closes(historical_cache, "AAPL") == before

    def test_unordered_batch_is_stored_ascending(self, historical_cache: HistoricalSeriesCache):
        """
        GIVEN an upstream batch out of order with a duplicate date
        WHEN it is merged into an empty cache
        THEN the stored series is ascending with one point per date
        """
        historical_cache.update_incremental("AAPL", [
            bar("2024-01-04", 103),
            bar("2024-01-02", 100),
            bar("2024-01-03", 101),
            bar("2024-01-02", 100.5),
        ])

        points = historical_cache.get_record("AAPL").points
        dates = [p.date for p in points]
        assert dates == sorted(set(dates))
        assert len(points) == 3

    def test_gap_in_upstream_data_is_kept(self, historical_cache: HistoricalSeriesCache):
        historical_cache.update_incremental("AAPL", [bar("2024-01-02", 100)])

        historical_cache.update_incremental("AAPL", [bar("2024-01-05", 105)])

        assert closes(historical_cache, "AAPL") == [("2024-01-02", 100), ("2024-01-05", 105)]

    def test_empty_or_invalid_batch_is_skipped(self, historical_cache: HistoricalSeriesCache):
        assert historical_cache.update_incremental("AAPL", []) == 0
        assert historical_cache.update_incremental("AAPL", [{"close": 1}, bar("2024-01-02", None)]) == 0
        assert historical_cache.get_record("AAPL") is None

    def test_timestamp_dates_are_normalized(self, historical_cache: HistoricalSeriesCache):
        """
        GIVEN bars dated with UTC timestamps
        WHEN they are merged
        THEN they are stored under the US/Eastern trading date
        """
        historical_cache.update_incremental("AAPL", [bar("2024-01-03T14:30:00Z", 101)])

        assert historical_cache.get_record("AAPL").last_date == date(2024, 1, 3)

    def test_asset_info_is_preserved(self, historical_cache: HistoricalSeriesCache):
        info = AssetInfo(name="Apple Inc.", symbol="AAPL", instrument_type="EQUITY")
        historical_cache.set("AAPL", [bar("2024-01-02", 100)], asset_info=info)

        historical_cache.update_incremental("AAPL", [bar("2024-01-03", 101)])

        assert historical_cache.get_record("AAPL").asset_info == info


# =============================================================================
# NEEDS UPDATE TESTS
# =============================================================================


class TestNeedsUpdate:
    """Tests for needs_update with today = Friday 2024-01-05."""

    def test_no_entry_needs_full_fetch(self, historical_cache: HistoricalSeriesCache):
        status = historical_cache.needs_update("AAPL")

        assert status.needs_update is True
        assert status.last_date is None
        assert status.days_missing == 0

    def test_reports_missing_trading_days(self, historical_cache: HistoricalSeriesCache):
        """
        GIVEN AAPL stored through Wednesday 2024-01-03
        WHEN needs_update is checked on Friday 2024-01-05
        THEN Thursday and Friday are reported missing
        """
        historical_cache.update_incremental("AAPL", [bar("2024-01-03", 101)])

        status = historical_cache.needs_update("AAPL")

        assert status.needs_update is True
        assert status.last_date == date(2024, 1, 3)
        assert status.missing_days == [date(2024, 1, 4), date(2024, 1, 5)]
        assert status.days_missing == 2

    def test_up_to_date_after_merging_today(self, historical_cache: HistoricalSeriesCache):
        """
        GIVEN AAPL behind by two days
        WHEN the missing bars are merged
        THEN needs_update becomes false
        """
        historical_cache.update_incremental("AAPL", [bar("2024-01-03", 101)])

        historical_cache.update_incremental("AAPL", [bar("2024-01-04", 102), bar("2024-01-05", 103)])

        assert historical_cache.needs_update("AAPL").needs_update is False

    def test_weekend_does_not_count(self, historical_cache: HistoricalSeriesCache, clock):
        """
        GIVEN AAPL stored through Friday 2024-01-05
        WHEN it is checked on Sunday 2024-01-07
        THEN nothing is missing
        """
        historical_cache.update_incremental("AAPL", [bar("2024-01-05", 103)])
        clock.advance(days=2)

        assert historical_cache.needs_update("AAPL").needs_update is False

    def test_threshold_is_configurable(self, historical_store, clock):
        cache = HistoricalSeriesCache(historical_store, clock=clock, min_missing_days=3)
        cache.update_incremental("AAPL", [bar("2024-01-03", 101)])

        assert cache.needs_update("AAPL").needs_update is False
        assert cache.needs_update("AAPL").days_missing == 2

    def test_missing_trading_days_helper(self):
        assert missing_trading_days(date(2024, 1, 5), date(2024, 1, 8)) == [date(2024, 1, 8)]
        assert missing_trading_days(date(2024, 1, 5), date(2024, 1, 5)) == []


# =============================================================================
# PERIOD FILTER TESTS
# =============================================================================


class TestGetPeriod:
    """Tests for get(symbol, period)."""

    @pytest.fixture
    def seeded(self, historical_cache: HistoricalSeriesCache) -> HistoricalSeriesCache:
        historical_cache.set("AAPL", [
            bar("2023-01-03", 90),
            bar("2023-10-02", 95),
            bar("2023-12-01", 98),
            bar("2024-01-02", 100),
            bar("2024-01-05", 103),
        ])
        return historical_cache

    def test_never_cached_returns_none(self, historical_cache: HistoricalSeriesCache):
        assert historical_cache.get("AAPL", "1m") is None

    def test_one_month_window(self, seeded: HistoricalSeriesCache):
        """
        GIVEN five points spanning a year
        WHEN the 1m window is requested on 2024-01-05
        THEN only the points since 2023-12-06 are returned, with totals
        """
        window = seeded.get("AAPL", "1m")

        assert [p.date.isoformat() for p in window.data] == ["2024-01-02", "2024-01-05"]
        assert window.filtered_data_points == 2
        assert window.total_data_points == 5
        assert window.filtered_period == "1m"
        assert window.needs_update is False

    def test_longer_periods(self, seeded: HistoricalSeriesCache):
        assert seeded.get("AAPL", "3m").filtered_data_points == 3
        assert seeded.get("AAPL", "1y").filtered_data_points == 4

    def test_max_and_none_return_everything(self, seeded: HistoricalSeriesCache):
        assert seeded.get("AAPL", "max").filtered_data_points == 5
        assert seeded.get("AAPL").filtered_data_points == 5

    def test_unknown_period_raises(self, seeded: HistoricalSeriesCache):
        with pytest.raises(ValidationError):
            seeded.get("AAPL", "7w")

    def test_get_does_not_mutate_storage(self, seeded: HistoricalSeriesCache):
        seeded.get("AAPL", "1m")

        assert seeded.get_record("AAPL").total_data_points == 5


# =============================================================================
# SET / MAINTENANCE TESTS
# =============================================================================


class TestSetAndMaintenance:
    """Tests for set, clear_old_entries, clear_all and stats."""

    def test_set_replaces_whole_series(self, historical_cache: HistoricalSeriesCache):
        historical_cache.set("AAPL", [bar("2024-01-02", 100), bar("2024-01-03", 101)])

        historical_cache.set("AAPL", [bar("2024-01-04", 200)])

        assert closes(historical_cache, "AAPL") == [("2024-01-04", 200)]

    def test_series_survives_reload(self, tmp_path, clock):
        path = tmp_path / "historical.json"
        HistoricalSeriesCache(JsonFileStore(path, clock=clock), clock=clock).update_incremental(
            "AAPL", [bar("2024-01-02", 100)]
        )

        reloaded = HistoricalSeriesCache(JsonFileStore(path, clock=clock), clock=clock)

        assert closes(reloaded, "AAPL") == [("2024-01-02", 100)]

    def test_clear_old_entries(self, historical_cache: HistoricalSeriesCache, clock):
        """
        GIVEN OLD modified 40 days ago and NEW modified today
        WHEN clear_old_entries(30) runs
        THEN only OLD is removed
        """
        historical_cache.set("OLD", [bar("2023-11-20", 1)])
        clock.advance(days=40)
        historical_cache.set("NEW", [bar("2024-02-13", 2)])

        removed = historical_cache.clear_old_entries(days_old=30)

        assert removed == 1
        assert historical_cache.get_all_symbols() == ["NEW"]

    def test_clear_all(self, historical_cache: HistoricalSeriesCache):
        historical_cache.set("AAPL", [bar("2024-01-02", 100)])

        assert historical_cache.clear_all() == 1
        assert historical_cache.get("AAPL") is None

    def test_stats(self, historical_cache: HistoricalSeriesCache):
        historical_cache.set("AAPL", [bar("2024-01-02", 100), bar("2024-01-05", 103)])
        historical_cache.set("MSFT", [bar("2024-01-03", 300)])

        stats = historical_cache.get_stats()

        assert stats["total_symbols"] == 2
        assert stats["total_data_points"] == 3
        assert stats["needs_update_count"] == 1
        assert stats["symbols"]["AAPL"]["date_span_days"] == 3
        assert stats["symbols"]["MSFT"]["days_missing"] == 2

    def test_malformed_persisted_record_reads_as_absent(self, historical_store, clock):
        historical_store.set("BAD", {"points": "nope"})
        cache = HistoricalSeriesCache(historical_store, clock=clock)

        assert cache.get_record("BAD") is None
        assert cache.needs_update("BAD").needs_update is True

    def test_normalize_points_last_duplicate_wins(self):
        points = normalize_points([bar("2024-01-02", 1), bar("2024-01-02", 2)])

        assert [p.close for p in points] == [2]
