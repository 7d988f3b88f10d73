"""Service layer entry points for the Nuclear Pulse news pipeline."""

from __future__ import annotations

from .aggregator import NewsAggregator, aggregate, get_aggregator  # noqa: F401
from .curated import curated  # noqa: F401
from .fetcher import FeedFetcher, FeedFetchError  # noqa: F401
from .feeds import FeedParseError, parse_feed  # noqa: F401
from .urls import canonicalize, is_article_url  # noqa: F401
from .validator import ItemRejected, RejectionLog, transform  # noqa: F401

__all__ = [
    "FeedFetchError",
    "FeedFetcher",
    "FeedParseError",
    "ItemRejected",
    "NewsAggregator",
    "RejectionLog",
    "aggregate",
    "canonicalize",
    "curated",
    "get_aggregator",
    "is_article_url",
    "parse_feed",
    "transform",
]
