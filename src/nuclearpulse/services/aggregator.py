"""Multi-source aggregation: fetch, validate, deduplicate, rank and cache."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from typing import Callable, Dict, Iterable, List, Sequence, Tuple, TypeVar

from nuclearpulse.cache import Cache, MemoryCache
from nuclearpulse.config import FeedRegistry, PipelineSettings, SourceDescriptor
from nuclearpulse.models import Article, RawItem
from nuclearpulse.services.curated import curated
from nuclearpulse.services.feeds import FeedParseError
from nuclearpulse.services.fetcher import FeedFetchError, FeedFetcher
from nuclearpulse.services.validator import ItemRejected, RejectionLog, transform

__all__ = [
    "AGGREGATE_CACHE_KEY",
    "NewsAggregator",
    "SingleFlight",
    "aggregate",
    "cap_per_source",
    "curated",
    "dedupe",
    "get_aggregator",
    "rank",
]

logger = logging.getLogger(__name__)

AGGREGATE_CACHE_KEY = "nuclear_news"

T = TypeVar("T")


class SingleFlight:
    """Collapse concurrent calls sharing a key into one in-flight execution.

    The first caller runs the function; callers arriving while it is running
    block on the same :class:`~concurrent.futures.Future` and receive its
    result (or exception).
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: Dict[str, Future] = {}

    def do(self, key: str, fn: Callable[[], T]) -> T:
        with self._lock:
            future = self._calls.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._calls[key] = future

        if not leader:
            return future.result()

        try:
            result = fn()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._calls.pop(key, None)

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._calls


def dedupe(articles: Iterable[Article]) -> List[Article]:
    """Keep the first article seen for each canonical URL."""

    seen: set[str] = set()
    unique: List[Article] = []
    for article in articles:
        if article.url in seen:
            continue
        seen.add(article.url)
        unique.append(article)
    return unique


def cap_per_source(articles: Iterable[Article], limit: int) -> List[Article]:
    """Drop articles beyond the first ``limit`` from any one source."""

    counts: Dict[str, int] = {}
    kept: List[Article] = []
    for article in articles:
        count = counts.get(article.source_id, 0)
        if count >= limit:
            continue
        counts[article.source_id] = count + 1
        kept.append(article)
    return kept


def _published_key(article: Article) -> float:
    return article.published_at.timestamp() if article.published_at else float("-inf")


def rank(articles: Iterable[Article], max_diversity: int, max_total: int) -> List[Article]:
    """Deduplicate, order newest first, cap each source, then truncate.

    Ordering before the per-source cap means each source keeps its most recent
    articles. Undated articles sort last.
    """

    ordered = sorted(dedupe(articles), key=_published_key, reverse=True)
    return cap_per_source(ordered, max_diversity)[:max_total]


class NewsAggregator:
    """Produce the ranked article digest for every source in a registry."""

    def __init__(
        self,
        registry: FeedRegistry | None = None,
        fetcher: FeedFetcher | None = None,
        cache: Cache | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.registry = registry or FeedRegistry.load()
        self.cache = cache if cache is not None else MemoryCache()
        self.fetcher = fetcher or FeedFetcher(self.registry.settings, self.cache)
        self._now = now or (lambda: datetime.now(UTC))
        self._flight = SingleFlight()
        self._rejections = RejectionLog()

    @property
    def settings(self) -> PipelineSettings:
        return self.registry.settings

    @property
    def rejections(self) -> RejectionLog:
        """Rejections recorded by the most recent regeneration."""

        return self._rejections

    def aggregate(self) -> List[Article]:
        """Return the current digest, regenerating it when the cached copy has expired."""

        cached = self.cache.get(AGGREGATE_CACHE_KEY)
        if cached is not None:
            logger.debug("Digest cache hit (%d articles)", len(cached))
            return list(cached)
        return list(self._flight.do(AGGREGATE_CACHE_KEY, self._regenerate))

    def curated(self) -> List[Article]:
        return curated()

    def clear_cache(self) -> None:
        """Force the next :meth:`aggregate` call to regenerate the digest."""

        self.cache.delete(AGGREGATE_CACHE_KEY)

    def _regenerate(self) -> List[Article]:
        # Another caller may have filled the cache while this one waited for the flight.
        cached = self.cache.get(AGGREGATE_CACHE_KEY)
        if cached is not None:
            return cached

        fetched = self._fetch_all(list(self.registry.iter_sources()))
        now = self._now()
        rejections = RejectionLog()

        articles: List[Article] = []
        for source, items in fetched:
            for item in items:
                try:
                    articles.append(transform(item, source, self.settings, now))
                except ItemRejected as exc:
                    rejections.record(item, exc)
                except Exception:  # noqa: BLE001 - broad catch keeps the other items running
                    logger.exception("Unexpected failure transforming %r from %s", item.title[:60], source.name)

        digest = rank(articles, self.settings.max_diversity, self.settings.max_total)
        if digest:
            logger.info(
                "Aggregated %d articles from %d sources",
                len(digest),
                len({article.source_id for article in digest}),
            )
        else:
            logger.warning("No live articles survived validation, serving curated fallback")
            digest = curated()

        if len(rejections):
            logger.info("Rejections: %s", rejections.tally())
        self._rejections = rejections

        self.cache.set(AGGREGATE_CACHE_KEY, digest, self.settings.cache_ttl)
        return digest

    def _fetch_all(
        self, sources: Sequence[SourceDescriptor]
    ) -> List[Tuple[SourceDescriptor, List[RawItem]]]:
        """Fetch every source concurrently and wait for all of them to settle.

        Failed sources are logged and omitted. Results come back in registry
        order regardless of completion order, so deduplication is deterministic.
        """

        if not sources:
            return []

        results: Dict[int, List[RawItem]] = {}
        workers = min(self.settings.max_workers, len(sources))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feed") as executor:
            futures = {
                executor.submit(self.fetcher.fetch_items, source): index
                for index, source in enumerate(sources)
            }
            for future in as_completed(futures):
                index = futures[future]
                source = sources[index]
                try:
                    results[index] = future.result()
                except (FeedFetchError, FeedParseError) as exc:
                    logger.warning("Skipping %s: %s", source.name, exc)
                except Exception:  # noqa: BLE001 - broad catch keeps the other sources running
                    logger.exception("Unexpected failure while fetching %s", source.name)

        return [(sources[index], results[index]) for index in sorted(results)]


_default_aggregator: NewsAggregator | None = None
_default_lock = threading.Lock()


def get_aggregator() -> NewsAggregator:
    """Return the process-wide aggregator, creating it on first use."""

    global _default_aggregator
    with _default_lock:
        if _default_aggregator is None:
            _default_aggregator = NewsAggregator()
        return _default_aggregator


def aggregate() -> List[Article]:
    """Return the ranked nuclear news digest using the default aggregator."""

    return get_aggregator().aggregate()
