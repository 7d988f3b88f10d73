"""Validation of raw feed items and their transformation into articles."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Dict, List
from urllib.parse import urljoin, urlsplit

from dateutil import parser as date_parser
from dateutil import tz

from nuclearpulse.config import PipelineSettings, SourceDescriptor
from nuclearpulse.models import Article, RawItem, Rejection, RejectionReason
from nuclearpulse.services.feeds import strip_html
from nuclearpulse.services.scoring import (
    engagement_score,
    extract_excerpt,
    infer_tag,
    relative_label,
    relevance_score,
    why_it_matters,
)
from nuclearpulse.services.urls import canonicalize, is_article_url

__all__ = ["ItemRejected", "RejectionLog", "parse_published", "transform"]

logger = logging.getLogger(__name__)

TZ_ALIASES = {
    "EST": tz.gettz("America/New_York"),
    "EDT": tz.gettz("America/New_York"),
    "CST": tz.gettz("America/Chicago"),
    "CDT": tz.gettz("America/Chicago"),
    "PST": tz.gettz("America/Los_Angeles"),
    "PDT": tz.gettz("America/Los_Angeles"),
    "UTC": UTC,
    "GMT": UTC,
}


class ItemRejected(Exception):
    """Raised by :func:`transform` when a raw item cannot become an article."""

    def __init__(self, reason: RejectionReason, detail: str = "") -> None:
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
        self.reason = reason
        self.detail = detail


class RejectionLog:
    """Thread-safe record of rejected items for diagnostics."""

    def __init__(self) -> None:
        self._entries: List[Rejection] = []
        self._lock = threading.Lock()

    def record(self, item: RawItem, error: ItemRejected) -> None:
        rejection = Rejection(
            source_id=item.source_id,
            title=item.title[:60],
            reason=error.reason,
            detail=error.detail,
        )
        with self._lock:
            self._entries.append(rejection)
        logger.debug("Rejected %r from %s: %s", rejection.title, item.source_id, error)

    def entries(self) -> List[Rejection]:
        with self._lock:
            return list(self._entries)

    def tally(self) -> Dict[str, int]:
        """Return the number of rejections per reason code."""

        with self._lock:
            counts = Counter(entry.reason.value for entry in self._entries)
        return dict(counts)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def parse_published(value: str) -> datetime | None:
    """Parse a feed timestamp (RFC 822, ISO 8601, ...) into an aware UTC datetime."""

    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value, tzinfos=TZ_ALIASES)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError, date_parser.ParserError):
        return None


def _resolve_link(link: str, source: SourceDescriptor) -> str:
    link = (link or "").strip()
    if not link:
        return ""
    try:
        if not urlsplit(link).scheme:
            link = urljoin(str(source.url), link)
    except ValueError:
        return ""
    return canonicalize(link)


def transform(
    item: RawItem,
    source: SourceDescriptor,
    settings: PipelineSettings | None = None,
    now: datetime | None = None,
) -> Article:
    """Validate ``item`` and build a scored :class:`Article` from it.

    Raises :class:`ItemRejected` carrying a :class:`RejectionReason` when the
    item is unusable.
    """

    settings = settings or PipelineSettings()
    now = now or datetime.now(UTC)

    title = item.title.strip()
    if not title:
        raise ItemRejected(RejectionReason.MISSING_TITLE)

    url = _resolve_link(item.link, source)
    try:
        parts = urlsplit(url) if url else None
    except ValueError:
        parts = None
    if parts is None or not parts.scheme or not parts.netloc:
        raise ItemRejected(RejectionReason.MISSING_URL, item.link[:120])
    if not is_article_url(url):
        raise ItemRejected(RejectionReason.NON_ARTICLE_URL, url)

    published_at = parse_published(item.published_text)
    if published_at is None:
        raise ItemRejected(RejectionReason.MISSING_DATE, item.published_text[:60])
    age = now - published_at
    if age > timedelta(days=settings.max_age_days):
        raise ItemRejected(RejectionReason.STALE, f"{age.days}d")

    description = strip_html(item.description)
    relevance = relevance_score(title, description)
    if not source.strict_topic_filter and relevance < settings.min_relevance:
        raise ItemRejected(RejectionReason.OFF_TOPIC, f"score {relevance}")

    tag = infer_tag(title, description)
    return Article(
        title=title,
        url=url,
        source=source.name,
        tag=tag,
        published_at=published_at,
        date_label=relative_label(published_at, now),
        relevance_score=relevance,
        engagement_score=engagement_score(title, source.trust, published_at, relevance, now),
        excerpt=extract_excerpt(item.description, settings.excerpt_chars),
        why_it_matters=why_it_matters(tag),
        source_id=source.id,
    )
