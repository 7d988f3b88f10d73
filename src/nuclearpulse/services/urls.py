"""URL canonicalisation and article-page heuristics.

Both functions are pure: they perform no I/O and always give the same answer
for the same input, so feed links from different publishers can be compared
and filtered before any scoring happens.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

__all__ = ["canonicalize", "is_article_url"]

TRACKING_PARAM_PREFIXES = ("utm_",)
TRACKING_PARAM_NAMES = frozenset({"ref", "fbclid", "gclid", "mc_cid", "mc_eid", "_ga"})
AMP_FLAG_VALUES = frozenset({"", "1", "true"})

# host -> (required path, query parameters that may carry the wrapped target)
REDIRECTORS = {
    "news.google.com": (None, ("url",)),
    "www.google.com": ("/url", ("q", "url")),
    "google.com": ("/url", ("q", "url")),
    "l.facebook.com": ("/l.php", ("u",)),
    "lm.facebook.com": ("/l.php", ("u",)),
}

_MULTI_SLASH = re.compile(r"/{2,}")
_TRAILING_AMP = re.compile(r"/amp/?$", re.IGNORECASE)

_NON_ARTICLE_PATHS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"/(tag|tags|topic|topics|category|categories)/",
        r"^/(page|p)/\d+",
        r"/page/\d+/?$",
        r"/(feed|rss)(/|$)",
        r"/(author|authors|contributor|contributors)/",
        r"^/(about|contact|subscribe|newsletter)(/|$)",
        r"^/(archive|archives)(/|$)",
        r"^/search(/|$)",
    )
)
_NON_ARTICLE_QUERY = re.compile(r"(^|&)(s|q|search)=|(^|&)(page|p)=\d+", re.IGNORECASE)
_HAS_LETTER = re.compile(r"[A-Za-z]")


def _is_tracking_param(name: str) -> bool:
    lowered = name.lower()
    return lowered in TRACKING_PARAM_NAMES or lowered.startswith(TRACKING_PARAM_PREFIXES)


def _unwrap_redirect(parts) -> str | None:
    """Return the target hidden inside a known redirector link, if any."""

    rule = REDIRECTORS.get(parts.netloc.lower())
    if rule is None:
        return None

    required_path, params = rule
    if required_path is not None and parts.path != required_path:
        return None

    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    for name in params:
        target = query.get(name, "").strip()
        if target.lower().startswith(("http://", "https://")):
            return target
    return None


def _strip_amp_path(path: str) -> str:
    while True:
        stripped = _TRAILING_AMP.sub("", path)
        if stripped == path:
            return path
        path = stripped


def _clean_query(query: str) -> str:
    if not query:
        return ""

    pairs = parse_qsl(query, keep_blank_values=True)
    kept = [
        (name, value)
        for name, value in pairs
        if not _is_tracking_param(name)
        and not (name.lower() == "amp" and value.lower() in AMP_FLAG_VALUES)
    ]
    if len(kept) == len(pairs):
        return query
    return urlencode(kept)


def canonicalize(url: str) -> str:
    """Return the canonical form of ``url``.

    Redirector links are unwrapped, the scheme and host are lowercased,
    duplicate slashes and trailing ``/amp`` segments are removed, and tracking
    parameters and fragments are dropped. Input that cannot be parsed is
    returned trimmed. ``canonicalize(canonicalize(u)) == canonicalize(u)``.
    """

    raw = (url or "").strip()
    if not raw:
        return ""

    try:
        parts = urlsplit(raw)
        # Redirectors are matched against the normalised path ("//url", "/url/amp").
        path = _strip_amp_path(_MULTI_SLASH.sub("/", parts.path))
        target = _unwrap_redirect(parts._replace(path=path))
        if target is not None:
            return canonicalize(target)

        return urlunsplit(
            (parts.scheme.lower(), parts.netloc.lower(), path, _clean_query(parts.query), "")
        )
    except ValueError:
        return raw


def is_article_url(url: str) -> bool:
    """Return ``True`` when ``url`` plausibly points at a single article page."""

    try:
        parts = urlsplit((url or "").strip())
    except ValueError:
        return False

    if parts.scheme.lower() not in {"http", "https"} or not parts.netloc:
        return False

    path = parts.path
    if not path or path.strip("/") == "":
        return False

    if any(pattern.search(path) for pattern in _NON_ARTICLE_PATHS):
        return False
    if parts.query and _NON_ARTICLE_QUERY.search(parts.query):
        return False

    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return False
    return bool(_HAS_LETTER.search(segments[-1]))
