"""Tests for the parsed statement cache."""

import threading

import pytest

from sqlbind.core.cache import ParsedStatementCache, clear_default_cache, get_default_cache, parse_cached
from sqlbind.core.config import ParameterConfig
from sqlbind.exceptions import ImproperConfigurationError


class TestParsedStatementCache:
    """Test the ParsedStatementCache implementation."""

    def test_get_or_parse_reuses_instance(self) -> None:
        """Test a second lookup returns the same parsed statement."""
        cache = ParsedStatementCache(max_size=10)

        first = cache.get_or_parse("SELECT :a")
        second = cache.get_or_parse("SELECT :a")

        assert first is second
        assert first.canonical_sql == "SELECT ?"
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1
        assert cache.stats.hit_rate == 50.0

    def test_get_missing(self) -> None:
        """Test ``get`` returns None for unknown SQL without scanning it."""
        cache = ParsedStatementCache()

        assert cache.get("SELECT 1") is None
        assert "SELECT 1" not in cache
        assert len(cache) == 0

    def test_eviction(self) -> None:
        """Test the least recently used statement is evicted first."""
        cache = ParsedStatementCache(max_size=3)
        for index in range(3):
            cache.get_or_parse(f"SELECT :p{index}")

        cache.get("SELECT :p0")
        cache.get_or_parse("SELECT :p3")

        assert len(cache) == 3
        assert "SELECT :p0" in cache
        assert "SELECT :p1" not in cache
        assert "SELECT :p3" in cache
        assert cache.stats.evictions == 1

    def test_default_size(self) -> None:
        """Test the default capacity."""
        assert ParsedStatementCache().max_size == 256

    @pytest.mark.parametrize("size", [0, -1])
    def test_invalid_size(self, size: int) -> None:
        """Test non-positive sizes are rejected."""
        with pytest.raises(ImproperConfigurationError):
            ParsedStatementCache(max_size=size)

    def test_clear_resets_stats(self) -> None:
        """Test clearing drops entries and statistics."""
        cache = ParsedStatementCache()
        cache.get_or_parse("SELECT :a")
        cache.get_or_parse("SELECT :a")

        cache.clear()

        assert len(cache) == 0
        assert cache.stats.hits == 0
        assert cache.stats.misses == 0

    def test_concurrent_access(self) -> None:
        """Test concurrent lookups of the same text agree on the result."""
        cache = ParsedStatementCache(max_size=8)
        results = []
        lock = threading.Lock()

        def worker() -> None:
            for index in range(50):
                parsed = cache.get_or_parse(f"SELECT :a{index % 10}, :b")
                with lock:
                    results.append(parsed)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 400
        assert len(cache) <= 8
        assert all(parsed.parameter_names[1] == "b" for parsed in results)


def test_default_cache_is_shared() -> None:
    """Test ``parse_cached`` goes through the process-wide cache."""
    parsed = parse_cached("SELECT :shared")

    assert get_default_cache() is get_default_cache()
    assert "SELECT :shared" in get_default_cache()
    assert parse_cached("SELECT :shared") is parsed

    clear_default_cache()

    assert "SELECT :shared" not in get_default_cache()


def test_operator_flag_is_part_of_the_key() -> None:
    """Test the same text is scanned separately with and without operator skipping."""
    cache = ParsedStatementCache()

    plain = cache.get_or_parse("SELECT data ?| :keys")
    skipping = cache.get_or_parse("SELECT data ?| :keys", skip_qmark_operators=True)

    assert plain is not skipping
    assert plain.anonymous_parameter_count == 1
    assert skipping.anonymous_parameter_count == 0
    assert len(cache) == 2
    assert "SELECT data ?| :keys" in cache


def test_parse_cached_uses_config_flag() -> None:
    """Test ``parse_cached`` scans with the operator flag of the config."""
    parsed = parse_cached("SELECT data ?? :key", ParameterConfig(skip_qmark_operators=True))

    assert parsed.parameter_names == ("key",)
    assert parse_cached("SELECT data ?? :key").parameter_names == (None, None, "key")
