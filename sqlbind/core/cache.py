"""LRU cache of parsed statements.

Parsed statements are immutable, so one cached instance can be handed to
any number of concurrent callers.
"""

import threading
from collections import OrderedDict
from typing import TYPE_CHECKING, Final, Optional

from mypy_extensions import mypyc_attr

from sqlbind.core.scanner import scan
from sqlbind.core.types import ParsedStatement
from sqlbind.exceptions import ImproperConfigurationError
from sqlbind.utils.logging import get_logger, statement_extra

if TYPE_CHECKING:
    from sqlbind.core.config import ParameterConfig

__all__ = ("CacheStats", "ParsedStatementCache", "clear_default_cache", "get_default_cache", "parse_cached")

logger = get_logger("core.cache")

DEFAULT_CACHE_LIMIT: Final = 256


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheStats:
    """Cache statistics tracking."""

    __slots__ = ("evictions", "hits", "misses")

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __repr__(self) -> str:
        return (
            f"CacheStats(hit_rate={self.hit_rate:.1f}%, "
            f"hits={self.hits}, misses={self.misses}, evictions={self.evictions})"
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class ParsedStatementCache:
    """Thread-safe LRU cache mapping SQL text to its :class:`ParsedStatement`.

    Entries are keyed by the text and the ``skip_qmark_operators`` scan flag.

    Args:
        max_size: Maximum number of statements kept (least recently used evicted first)
    """

    __slots__ = ("_cache", "_lock", "_max_size", "_stats")

    def __init__(self, max_size: int = DEFAULT_CACHE_LIMIT) -> None:
        if max_size < 1:
            msg = f"max_size must be positive, got {max_size}"
            raise ImproperConfigurationError(msg)
        self._cache: OrderedDict[tuple[str, bool], ParsedStatement] = OrderedDict()
        self._lock = threading.Lock()
        self._max_size = max_size
        self._stats = CacheStats()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def stats(self) -> CacheStats:
        return self._stats

    def get(self, sql: str, skip_qmark_operators: bool = False) -> Optional[ParsedStatement]:
        key = (sql, skip_qmark_operators)
        with self._lock:
            parsed = self._cache.get(key)
            if parsed is None:
                self._stats.misses += 1
                return None
            self._cache.move_to_end(key)
            self._stats.hits += 1
            return parsed

    def get_or_parse(self, sql: str, skip_qmark_operators: bool = False) -> ParsedStatement:
        """Return the cached statement for ``sql``, scanning it on a miss."""
        cached = self.get(sql, skip_qmark_operators)
        if cached is not None:
            return cached
        # scanning happens outside the lock; a racing thread may scan the same text
        parsed = scan(sql, skip_qmark_operators)
        key = (sql, skip_qmark_operators)
        with self._lock:
            existing = self._cache.get(key)
            if existing is not None:
                return existing
            self._cache[key] = parsed
            if len(self._cache) > self._max_size:
                evicted, _ = self._cache.popitem(last=False)
                self._stats.evictions += 1
                logger.debug("Evicted parsed statement from cache", extra=statement_extra(evicted[0]))
        return parsed

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._stats.reset()

    def __contains__(self, sql: object) -> bool:
        if isinstance(sql, str):
            return (sql, False) in self._cache or (sql, True) in self._cache
        return sql in self._cache

    def __len__(self) -> int:
        return len(self._cache)


_default_cache: Optional[ParsedStatementCache] = None
_cache_lock = threading.Lock()


def get_default_cache() -> ParsedStatementCache:
    """Get the process-wide parsed statement cache.

    Returns:
        Singleton default cache instance
    """
    global _default_cache
    if _default_cache is None:
        with _cache_lock:
            if _default_cache is None:
                _default_cache = ParsedStatementCache()
    return _default_cache


def clear_default_cache() -> None:
    if _default_cache is not None:
        _default_cache.clear()


def parse_cached(sql: str, config: "Optional[ParameterConfig]" = None) -> ParsedStatement:
    """Scan ``sql`` through the default cache, honouring the scan flag of ``config``."""
    skip_qmark_operators = config.skip_qmark_operators if config is not None else False
    return get_default_cache().get_or_parse(sql, skip_qmark_operators)
