import threading
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Dict, List

import pytest
import requests

from nuclearpulse.cache import MemoryCache
from nuclearpulse.config import FeedRegistry, PipelineSettings, SourceDescriptor
from nuclearpulse.models import Article, RawItem, Tag
from nuclearpulse.services import aggregator as aggregator_module
from nuclearpulse.services.aggregator import NewsAggregator, SingleFlight, rank
from nuclearpulse.services.curated import curated
from nuclearpulse.services.feeds import FeedParseError
from nuclearpulse.services.fetcher import FeedFetcher

NOW = datetime(2025, 10, 6, 12, 0, tzinfo=UTC)


def make_source(source_id: str, trust: int = 8) -> SourceDescriptor:
    return SourceDescriptor(
        id=source_id,
        name=source_id.title(),
        url=f"https://{source_id}.example/feed",
        trust=trust,
    )


def make_item(source_id: str, slug: str, hours_ago: float, link: str | None = None) -> RawItem:
    return RawItem(
        title=f"Reactor update {slug}",
        link=link or f"https://{source_id}.example/news/{slug}",
        description="The nuclear plant reported steady output this week.",
        published_text=(NOW - timedelta(hours=hours_ago)).isoformat(),
        source_id=source_id,
    )


class FakeFetcher:
    def __init__(self, items: Dict[str, object]) -> None:
        self.items = items
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def fetch_items(self, source: SourceDescriptor) -> List[RawItem]:
        with self._lock:
            self.calls.append(source.id)
        result = self.items[source.id]
        if isinstance(result, Exception):
            raise result
        return list(result)


def make_aggregator(sources, items, **settings) -> tuple[NewsAggregator, FakeFetcher]:
    registry = FeedRegistry(sources=sources, settings=PipelineSettings(**settings))
    fetcher = FakeFetcher(items)
    aggregator = NewsAggregator(registry, fetcher=fetcher, cache=MemoryCache(), now=lambda: NOW)
    return aggregator, fetcher


def make_article(url: str, source_id: str, published_at: datetime | None) -> Article:
    return Article(
        title="Reactor news",
        url=url,
        source=source_id,
        tag=Tag.INDUSTRY,
        published_at=published_at,
        date_label="",
        relevance_score=2,
        engagement_score=10,
        why_it_matters="",
        source_id=source_id,
    )


def test_redirect_and_tracking_variants_collapse_to_one_article() -> None:
    target = "https://www.reactor.example/news/smr-deal"
    items = {
        "alpha": [
            make_item(
                "alpha",
                "smr-deal",
                2,
                link="https://news.google.com/rss/articles/abc?url=https%3A%2F%2Fwww.reactor.example%2Fnews%2Fsmr-deal",
            )
        ],
        "beta": [make_item("beta", "smr-deal", 1, link=f"{target}?utm_source=rss&utm_medium=feed")],
    }
    aggregator, _ = make_aggregator([make_source("alpha"), make_source("beta")], items)

    digest = aggregator.aggregate()

    assert [article.url for article in digest] == [target]
    assert digest[0].source_id == "alpha"


def test_busy_source_keeps_only_its_newest_three() -> None:
    items = {"busy": [make_item("busy", f"story-{n}", n) for n in range(1, 11)]}
    aggregator, _ = make_aggregator([make_source("busy")], items)

    digest = aggregator.aggregate()

    assert [article.url.rsplit("/", 1)[-1] for article in digest] == ["story-1", "story-2", "story-3"]


def test_digest_is_ordered_unique_diverse_and_bounded() -> None:
    sources = [make_source(name) for name in ("alpha", "beta", "gamma")]
    items = {
        source.id: [make_item(source.id, f"{source.id}-{n}", n * 3 + offset) for n in range(6)]
        for offset, source in enumerate(sources)
    }
    aggregator, _ = make_aggregator(sources, items, max_total=7)

    digest = aggregator.aggregate()

    assert len(digest) == 7
    timestamps = [article.published_at for article in digest]
    assert timestamps == sorted(timestamps, reverse=True)
    assert len({article.url for article in digest}) == len(digest)
    for source in sources:
        assert sum(article.source_id == source.id for article in digest) <= 3
    assert not any(article.is_fallback for article in digest)


def test_all_sources_failing_serves_curated_fallback() -> None:
    def failing_get(url: str, timeout: float):
        raise requests.Timeout("timed out")

    registry = FeedRegistry(sources=[make_source("alpha"), make_source("beta")])
    fetcher = FeedFetcher(registry.settings, MemoryCache(), session=SimpleNamespace(get=failing_get))
    aggregator = NewsAggregator(registry, fetcher=fetcher, cache=MemoryCache())

    digest = aggregator.aggregate()

    assert digest == curated()
    assert all(article.is_fallback for article in digest)
    assert aggregator.rejections.tally() == {}


def test_stale_items_are_rejected_and_fallback_served() -> None:
    items = {"alpha": [make_item("alpha", f"old-{n}", 24 * (40 + n)) for n in range(4)]}
    aggregator, _ = make_aggregator([make_source("alpha")], items)

    digest = aggregator.aggregate()

    assert digest == curated()
    assert aggregator.rejections.tally() == {"stale": 4}


def test_failing_sources_do_not_affect_others() -> None:
    items = {
        "alpha": RuntimeError("boom"),
        "beta": FeedParseError("not a feed"),
        "gamma": [make_item("gamma", "steady-output", 2)],
    }
    aggregator, fetcher = make_aggregator([make_source(name) for name in ("alpha", "beta", "gamma")], items)

    digest = aggregator.aggregate()

    assert [article.source_id for article in digest] == ["gamma"]
    assert sorted(fetcher.calls) == ["alpha", "beta", "gamma"]


def test_digest_is_cached_until_cleared() -> None:
    items = {"alpha": [make_item("alpha", "steady-output", 2)]}
    aggregator, fetcher = make_aggregator([make_source("alpha")], items)

    first = aggregator.aggregate()
    second = aggregator.aggregate()
    assert first == second
    assert fetcher.calls == ["alpha"]

    aggregator.clear_cache()
    aggregator.aggregate()
    assert fetcher.calls == ["alpha", "alpha"]


def test_concurrent_callers_share_one_regeneration() -> None:
    started = threading.Event()
    release = threading.Event()

    class BlockingFetcher(FakeFetcher):
        def fetch_items(self, source: SourceDescriptor) -> List[RawItem]:
            started.set()
            assert release.wait(timeout=5)
            return super().fetch_items(source)

    registry = FeedRegistry(sources=[make_source("alpha")])
    fetcher = BlockingFetcher({"alpha": [make_item("alpha", "steady-output", 2)]})
    aggregator = NewsAggregator(registry, fetcher=fetcher, cache=MemoryCache(), now=lambda: NOW)

    results: List[List[Article]] = []
    results_lock = threading.Lock()

    def call() -> None:
        digest = aggregator.aggregate()
        with results_lock:
            results.append(digest)

    leader = threading.Thread(target=call)
    leader.start()
    assert started.wait(timeout=5)

    followers = [threading.Thread(target=call) for _ in range(4)]
    for thread in followers:
        thread.start()
    release.set()
    for thread in [leader, *followers]:
        thread.join(timeout=5)

    assert fetcher.calls == ["alpha"]
    assert len(results) == 5
    assert all(result == results[0] for result in results)


def test_single_flight_propagates_errors_and_resets() -> None:
    flight = SingleFlight()

    def explode() -> int:
        raise ValueError("boom")

    with pytest.raises(ValueError):
        flight.do("key", explode)

    assert not flight.in_flight("key")
    assert flight.do("key", lambda: 42) == 42


def test_rank_places_undated_articles_last() -> None:
    undated = make_article("https://a.example/news/undated", "a", None)
    older = make_article("https://b.example/news/older", "b", NOW - timedelta(days=2))
    newer = make_article("https://c.example/news/newer", "c", NOW - timedelta(hours=1))

    assert rank([undated, older, newer], max_diversity=3, max_total=30) == [newer, older, undated]


def test_module_level_aggregate_uses_default_aggregator(monkeypatch: pytest.MonkeyPatch) -> None:
    expected = curated()[:2]
    stub = SimpleNamespace(aggregate=lambda: expected)
    monkeypatch.setattr(aggregator_module, "_default_aggregator", stub)

    assert aggregator_module.get_aggregator() is stub
    assert aggregator_module.aggregate() == expected


def test_malformed_items_are_rejected_without_aborting_the_run() -> None:
    items = {
        "alpha": [
            make_item("alpha", "broken-link", 1, link="https://news.google.com/x?url=http://[bad/path"),
            RawItem(
                title="Reactor update with an impossible date",
                link="https://alpha.example/news/impossible-date",
                published_text="0001-01-01T00:00:00+05:00",
                source_id="alpha",
            ),
            make_item("alpha", "steady-output", 2),
        ]
    }
    aggregator, _ = make_aggregator([make_source("alpha")], items)

    digest = aggregator.aggregate()

    assert [article.url for article in digest] == ["https://alpha.example/news/steady-output"]
    assert aggregator.rejections.tally() == {"missing-url": 1, "missing-date": 1}


def test_unexpected_transform_errors_skip_only_that_item(monkeypatch: pytest.MonkeyPatch) -> None:
    original_transform = aggregator_module.transform

    def flaky_transform(item, source, settings, now):
        if "explode" in item.title:
            raise RuntimeError("boom")
        return original_transform(item, source, settings, now)

    monkeypatch.setattr(aggregator_module, "transform", flaky_transform)
    items = {"alpha": [make_item("alpha", "explode", 1), make_item("alpha", "steady-output", 2)]}
    aggregator, _ = make_aggregator([make_source("alpha")], items)

    digest = aggregator.aggregate()

    assert [article.url for article in digest] == ["https://alpha.example/news/steady-output"]
    assert aggregator.cache.get("nuclear_news") == digest
