"""RSS and Atom parsing into :class:`~nuclearpulse.models.RawItem` records."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterator, List, Tuple

from bs4 import BeautifulSoup, ParserRejectedMarkup
from bs4.element import Tag as Element

from nuclearpulse.models import RawItem

__all__ = ["ATOM", "RSS", "FeedDialect", "FeedParseError", "detect_dialect", "parse_feed", "strip_html"]

_WHITESPACE = re.compile(r"\s+")


class FeedParseError(ValueError):
    """Raised when a document is not a recognisable RSS or Atom feed."""


def strip_html(markup: str | None) -> str:
    """Return ``markup`` as plain text with entities decoded and whitespace collapsed."""

    if not markup:
        return ""
    text = markup
    if "<" in text or "&" in text:
        text = BeautifulSoup(text, "lxml").get_text(" ")
    return _WHITESPACE.sub(" ", text).strip()


def _local_name(element: Element) -> str:
    return element.name.rsplit(":", 1)[-1]


def _children(entry: Element, name: str) -> Iterator[Element]:
    for child in entry.find_all(True, recursive=False):
        if _local_name(child) == name:
            yield child


def _first_text(entry: Element, names: Tuple[str, ...]) -> str:
    """Return the first non-empty child text, honouring the preference order of ``names``."""

    for name in names:
        for child in _children(entry, name):
            text = child.get_text()
            if text and text.strip():
                return text
    return ""


def _rss_link(entry: Element) -> str:
    link = _first_text(entry, ("link",)).strip()
    if link.startswith("http"):
        return link

    # Some feeds leave <link> empty and publish the permalink as the guid.
    for guid in _children(entry, "guid"):
        text = guid.get_text(strip=True)
        permalink = str(guid.get("isPermaLink", "true")).strip().lower() != "false"
        if permalink and text.startswith("http"):
            return text
    return link


def _atom_link(entry: Element) -> str:
    for link in _children(entry, "link"):
        rel = link.get("rel")
        if isinstance(rel, list):
            rel = " ".join(rel)
        if rel not in (None, "", "alternate"):
            continue
        href = (link.get("href") or link.get_text(strip=True) or "").strip()
        if href:
            return href
    return ""


@dataclass(frozen=True)
class FeedDialect:
    """Where a syndication dialect keeps each field of an entry."""

    name: str
    entry_tag: str
    description_tags: Tuple[str, ...]
    date_tags: Tuple[str, ...]
    extract_link: Callable[[Element], str]


RSS = FeedDialect(
    name="rss",
    entry_tag="item",
    description_tags=("description", "summary", "encoded", "content"),
    date_tags=("pubDate", "published", "updated", "date"),
    extract_link=_rss_link,
)

ATOM = FeedDialect(
    name="atom",
    entry_tag="entry",
    description_tags=("summary", "content", "description"),
    date_tags=("published", "updated", "date", "pubDate"),
    extract_link=_atom_link,
)

#: Root element local name -> dialect. RSS 1.0 documents are rooted at ``rdf:RDF``.
DIALECTS_BY_ROOT = {
    "rss": RSS,
    "RDF": RSS,
    "feed": ATOM,
}


def detect_dialect(soup: BeautifulSoup) -> Tuple[FeedDialect, Element]:
    """Return the dialect and root element of a parsed document."""

    root = soup.find(True)
    if root is None:
        raise FeedParseError("Document contains no XML elements")

    dialect = DIALECTS_BY_ROOT.get(_local_name(root))
    if dialect is None:
        raise FeedParseError(f"Unrecognised feed root element <{root.name}>")
    return dialect, root


def parse_feed(text: str | bytes, source_id: str, limit: int = 8) -> List[RawItem]:
    """Parse an RSS or Atom document into at most ``limit`` raw items.

    Only the first ``limit`` entries are examined; entries without a title or
    link are dropped.
    """

    if not text or not text.strip():
        raise FeedParseError("Empty feed document")

    try:
        soup = BeautifulSoup(text, "xml")
    except ParserRejectedMarkup as exc:
        raise FeedParseError(f"Unparseable feed document: {exc}") from exc
    dialect, root = detect_dialect(soup)

    entries = root.find_all(lambda element: _local_name(element) == dialect.entry_tag)

    items: List[RawItem] = []
    for entry in entries[:limit]:
        title = strip_html(_first_text(entry, ("title",)))
        link = dialect.extract_link(entry)
        if not title or not link:
            continue
        items.append(
            RawItem(
                title=title,
                link=link,
                description=_first_text(entry, dialect.description_tags),
                published_text=_first_text(entry, dialect.date_tags).strip(),
                source_id=source_id,
            )
        )
    return items
