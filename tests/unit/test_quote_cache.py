"""
Unit tests for QuoteCache.

Tests cover:
- TTL hit/miss boundaries
- Failed fetches are never cached
- Concurrent misses share one upstream call
- Housekeeping helpers
"""

import threading
import time

import pytest

from market_cache.core.exceptions import FetchError
from market_cache.services import QuoteCache


class CountingFetch:
    """fetch_fn that counts calls and returns an increasing value."""

    def __init__(self):
        self.calls = 0

    def __call__(self) -> int:
        self.calls += 1
        return self.calls


# =============================================================================
# TTL TESTS
# =============================================================================


class TestGetOrFetchTtl:
    """Tests for TTL behaviour."""

    def test_second_call_within_ttl_uses_cache(self, quote_cache: QuoteCache, monotonic):
        """
        GIVEN a 1 second TTL
        WHEN get_or_fetch is called twice within that second
        THEN fetch_fn runs exactly once
        """
        fetch = CountingFetch()

        first = quote_cache.get_or_fetch("x", 1.0, fetch)
        monotonic.advance(0.5)
        second = quote_cache.get_or_fetch("x", 1.0, fetch)

        assert first == second == 1
        assert fetch.calls == 1

    def test_call_after_ttl_refetches(self, quote_cache: QuoteCache, monotonic):
        """
        GIVEN a value cached with a 1 second TTL
        WHEN exactly 1 second has passed
        THEN fetch_fn runs again and the new value is returned
        """
        fetch = CountingFetch()
        quote_cache.get_or_fetch("x", 1.0, fetch)

        monotonic.advance(1.0)
        value = quote_cache.get_or_fetch("x", 1.0, fetch)

        assert value == 2
        assert fetch.calls == 2

    def test_keys_are_independent(self, quote_cache: QuoteCache):
        fetch = CountingFetch()

        quote_cache.get_or_fetch("a", 60, fetch)
        quote_cache.get_or_fetch("b", 60, fetch)

        assert fetch.calls == 2

    def test_stats_count_hits_and_misses(self, quote_cache: QuoteCache):
        fetch = CountingFetch()
        quote_cache.get_or_fetch("x", 60, fetch)
        quote_cache.get_or_fetch("x", 60, fetch)
        quote_cache.get_or_fetch("x", 60, fetch)

        stats = quote_cache.stats()

        assert stats == {"entries": 1, "hits": 2, "misses": 1, "in_flight": 0}


# =============================================================================
# FAILURE TESTS
# =============================================================================


class TestFailuresNotCached:
    """Tests that a failed fetch never poisons the cache."""

    def test_failure_propagates_and_is_not_stored(self, quote_cache: QuoteCache):
        """
        GIVEN a fetch_fn that fails once and then succeeds
        WHEN get_or_fetch is called twice
        THEN the first call raises and the second call fetches again
        """
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise FetchError("upstream down", symbol="X")
            return 42

        with pytest.raises(FetchError):
            quote_cache.get_or_fetch("x", 60, flaky)

        assert quote_cache.peek("x") is None
        assert quote_cache.get_or_fetch("x", 60, flaky) == 42
        assert len(attempts) == 2

    def test_failure_keeps_previous_expired_value_out(self, quote_cache: QuoteCache, monotonic):
        """
        GIVEN an expired value
        WHEN the refetch fails
        THEN the error propagates rather than the old value being returned
        """
        quote_cache.get_or_fetch("x", 1.0, lambda: "old")
        monotonic.advance(5)

        def failing():
            raise FetchError("upstream down")

        with pytest.raises(FetchError):
            quote_cache.get_or_fetch("x", 1.0, failing)


# =============================================================================
# CONCURRENCY TESTS
# =============================================================================


class TestSingleflight:
    """Tests for concurrent misses on the same key."""

    def test_concurrent_misses_share_one_fetch(self):
        """
        GIVEN a slow fetch_fn
        WHEN five threads miss on the same key at once
        THEN fetch_fn runs once and every thread gets its value
        """
        cache = QuoteCache()
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_fetch():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "value"

        results = []
        leader = threading.Thread(target=lambda: results.append(cache.get_or_fetch("k", 60, slow_fetch)))
        leader.start()
        assert started.wait(timeout=5)

        followers = [
            threading.Thread(target=lambda: results.append(cache.get_or_fetch("k", 60, slow_fetch)))
            for _ in range(4)
        ]
        for t in followers:
            t.start()
        # Give followers time to join the in-flight fetch
        time.sleep(0.1)
        release.set()
        for t in [leader, *followers]:
            t.join(timeout=5)

        assert len(calls) == 1
        assert results == ["value"] * 5

    def test_waiters_receive_leader_exception(self):
        cache = QuoteCache()
        started = threading.Event()
        release = threading.Event()
        errors = []

        def failing_fetch():
            started.set()
            release.wait(timeout=5)
            raise FetchError("upstream down")

        def call():
            try:
                cache.get_or_fetch("k", 60, failing_fetch)
            except FetchError as e:
                errors.append(e)

        leader = threading.Thread(target=call)
        leader.start()
        assert started.wait(timeout=5)
        follower = threading.Thread(target=call)
        follower.start()
        time.sleep(0.1)
        release.set()
        leader.join(timeout=5)
        follower.join(timeout=5)

        assert len(errors) == 2
        assert cache.stats()["entries"] == 0


# =============================================================================
# HOUSEKEEPING TESTS
# =============================================================================


class TestHousekeeping:
    """Tests for peek, invalidate, purge_expired and clear."""

    def test_peek_respects_ttl(self, quote_cache: QuoteCache, monotonic):
        quote_cache.get_or_fetch("x", 10, lambda: "v")
        monotonic.advance(11)

        assert quote_cache.peek("x") == "v"
        assert quote_cache.peek("x", ttl_seconds=10) is None

    def test_invalidate_forces_refetch(self, quote_cache: QuoteCache):
        fetch = CountingFetch()
        quote_cache.get_or_fetch("x", 60, fetch)

        assert quote_cache.invalidate("x") is True
        assert quote_cache.invalidate("x") is False
        quote_cache.get_or_fetch("x", 60, fetch)
        assert fetch.calls == 2

    def test_purge_expired_and_clear(self, quote_cache: QuoteCache, monotonic):
        quote_cache.get_or_fetch("old", 60, lambda: 1)
        monotonic.advance(100)
        quote_cache.get_or_fetch("new", 60, lambda: 2)

        assert quote_cache.purge_expired(60) == 1
        assert quote_cache.peek("new") == 2
        assert quote_cache.clear() == 1
