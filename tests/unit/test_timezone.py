"""
Unit tests for the market clock helpers.

Tests cover:
- Eastern conversion of naive and aware timestamps
- Bar timestamps reduced to their trading date
- Weekday calendar iteration
"""

from datetime import date, datetime, timezone

from market_cache.core.timezone import (
    EASTERN_TZ,
    eastern_date,
    is_trading_day,
    iter_trading_days,
    parse_datetime_eastern,
    to_eastern,
    to_trading_date,
)


# =============================================================================
# CONVERSION TESTS
# =============================================================================


class TestEasternConversion:
    """Tests for to_eastern and parsing."""

    def test_naive_datetime_is_taken_as_eastern(self):
        result = to_eastern(datetime(2024, 1, 3, 9, 30))
        assert result.tzinfo is not None
        assert result.hour == 9
        assert result.utcoffset().total_seconds() == -5 * 3600

    def test_utc_datetime_is_shifted(self):
        result = to_eastern(datetime(2024, 7, 1, 16, 0, tzinfo=timezone.utc))
        # EDT in July
        assert result.hour == 12

    def test_parse_keeps_explicit_offset(self):
        result = parse_datetime_eastern("2024-01-03T14:30:00+00:00")
        assert result == EASTERN_TZ.localize(datetime(2024, 1, 3, 9, 30))

    def test_late_utc_evening_is_previous_market_date(self):
        """
        GIVEN 02:00 UTC on Jan 3
        WHEN reduced to a market date
        THEN the Eastern date is Jan 2
        """
        assert eastern_date(datetime(2024, 1, 3, 2, 0, tzinfo=timezone.utc)) == date(2024, 1, 2)


# =============================================================================
# TRADING DATE TESTS
# =============================================================================


class TestTradingDate:
    """Tests for to_trading_date."""

    def test_date_only_string(self):
        assert to_trading_date("2024-01-05") == date(2024, 1, 5)

    def test_plain_date_passes_through(self):
        assert to_trading_date(date(2024, 1, 5)) == date(2024, 1, 5)

    def test_utc_timestamp_string(self):
        assert to_trading_date("2024-01-03T02:00:00Z") == date(2024, 1, 2)

    def test_midnight_label_keeps_its_own_date(self):
        """
        GIVEN a daily crypto bar labelled 2024-01-03 00:00 UTC
        WHEN reduced to a trading date
        THEN it stays on the 3rd rather than the Eastern evening of the 2nd
        """
        assert to_trading_date(datetime(2024, 1, 3, tzinfo=timezone.utc)) == date(2024, 1, 3)
        assert to_trading_date("2024-01-03T00:00:00Z") == date(2024, 1, 3)


class TestTradingCalendar:
    """Tests for the weekday calendar."""

    def test_weekend_is_not_trading_day(self):
        assert is_trading_day(date(2024, 1, 5))
        assert not is_trading_day(date(2024, 1, 6))
        assert not is_trading_day(date(2024, 1, 7))

    def test_iter_skips_weekend(self):
        days = list(iter_trading_days(date(2024, 1, 5), date(2024, 1, 9)))
        assert days == [date(2024, 1, 5), date(2024, 1, 8), date(2024, 1, 9)]

    def test_iter_empty_when_end_before_start(self):
        assert list(iter_trading_days(date(2024, 1, 9), date(2024, 1, 8))) == []
