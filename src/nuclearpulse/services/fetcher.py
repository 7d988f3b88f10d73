"""HTTP retrieval of feed documents with channel fallback and per-source caching."""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from nuclearpulse.cache import Cache, MemoryCache
from nuclearpulse.config import PipelineSettings, SourceDescriptor
from nuclearpulse.models import RawItem
from nuclearpulse.services.feeds import parse_feed

__all__ = ["DEFAULT_HEADERS", "FeedFetchError", "FeedFetcher", "build_channel_url"]

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/129.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "application/rss+xml,application/atom+xml,application/xml;q=0.9,"
        "text/xml;q=0.9,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

# No transport retries; a failed attempt falls through to the next channel.
# ``fetch_timeout`` bounds the connect and each socket read separately.
_retry = Retry(total=0, backoff_factor=0, allowed_methods={"GET"})


class FeedFetchError(RuntimeError):
    """Raised when no retrieval channel produced a usable response for a source."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id


def build_channel_url(template: str, url: str) -> str:
    """Expand a channel template with the raw and percent-encoded endpoint."""

    return template.format(url=url, quoted=quote(url, safe=""))


def _build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update(DEFAULT_HEADERS)
    session.mount("https://", HTTPAdapter(max_retries=_retry))
    session.mount("http://", HTTPAdapter(max_retries=_retry))
    return session


class FeedFetcher:
    """Fetch and parse feeds, trying each configured retrieval channel in turn."""

    def __init__(
        self,
        settings: PipelineSettings | None = None,
        cache: Cache | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or PipelineSettings()
        self.cache = cache if cache is not None else MemoryCache()
        self._session = session or _build_session()

    @staticmethod
    def cache_key(source: SourceDescriptor) -> str:
        return f"feed:{source.id}"

    def fetch_text(self, source: SourceDescriptor) -> str:
        """Return the raw feed document for ``source``.

        Channels are attempted in order and the first successful response wins.
        :class:`FeedFetchError` is raised when every channel fails.
        """

        endpoint = str(source.url)
        last_error: Exception | None = None

        for template in self.settings.channels:
            target = build_channel_url(template, endpoint)
            try:
                response = self._session.get(target, timeout=self.settings.fetch_timeout)
                response.raise_for_status()
            except requests.RequestException as exc:
                logger.warning("Channel %s failed for %s: %s", template, source.name, exc)
                last_error = exc
                continue
            return response.text

        raise FeedFetchError(source.id, "all retrieval channels failed") from last_error

    def fetch_items(self, source: SourceDescriptor) -> List[RawItem]:
        """Return parsed raw items for ``source``, served from cache when fresh."""

        key = self.cache_key(source)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s (%d items)", source.id, len(cached))
            return list(cached)

        text = self.fetch_text(source)
        items = parse_feed(text, source.id, limit=self.settings.max_per_feed)
        self.cache.set(key, items, self.settings.cache_ttl)
        logger.info("Fetched %d items from %s", len(items), source.name)
        return list(items)
