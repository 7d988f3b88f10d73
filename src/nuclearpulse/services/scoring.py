"""Tagging, relevance, engagement and display helpers for articles."""

from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional, Tuple

from nuclearpulse.models import Tag
from nuclearpulse.services.feeds import strip_html

NUCLEAR_KEYWORDS = (
    "nuclear", "reactor", "uranium", "fission", "fusion", "smr", "haleu",
    "enrichment", "plutonium", "candu", "vver", "thorium", "westinghouse",
    "nuscale", "oklo", "cameco", "centrus", "iter", "tokamak", "kairos",
    "terrapower", "x-energy", "darlington", "vogtle", "iaea", "nrc",
    "decommission", "spent fuel", "nuclear waste", "gigawatt", "megawatt",
    "baseload", "decarbonization", "zero-carbon", "low-carbon",
    "gen iv", "fast reactor", "pressurized water", "boiling water", "microreactor",
)

# Matched at the start of a word so "smr" hits "SMRs" but "iter" skips "writer".
_KEYWORD_PATTERNS = tuple(re.compile(r"\b" + re.escape(keyword)) for keyword in NUCLEAR_KEYWORDS)

# Evaluated in order, first match wins.
TAG_RULES: List[Tuple[Tag, re.Pattern[str]]] = [
    (
        Tag.POLICY,
        re.compile(
            r"policy|regulat|legislation|government|\bNRC\b|\bIAEA\b|permit|licens|\bban\b|treaty|approval",
            re.IGNORECASE,
        ),
    ),
    (
        Tag.EXPANSION,
        re.compile(
            r"construction|build|new reactor|new plant|\bSMR|modular|deploy|commission|startup|breaks ground",
            re.IGNORECASE,
        ),
    ),
    (
        Tag.MARKETS,
        re.compile(
            r"uranium.*price|price.*uranium|stock|market|invest|billion|deal|acqui|merger|revenue|earnings|funding",
            re.IGNORECASE,
        ),
    ),
    (
        Tag.RESEARCH,
        re.compile(
            r"fusion|research|study|scientist|breakthrough|experiment|\bITER\b|plasma|demonstration|prototype",
            re.IGNORECASE,
        ),
    ),
    (
        Tag.SAFETY,
        re.compile(
            r"safety|incident|shutdown|leak|radiation|emergency|risk|inspection|accident|contamin",
            re.IGNORECASE,
        ),
    ),
    (
        Tag.INNOVATION,
        re.compile(
            r"advanced|microreactor|molten salt|thorium|fast reactor|next.gen|generation IV|gen[- ]?4",
            re.IGNORECASE,
        ),
    ),
]

WHY_IT_MATTERS = {
    Tag.POLICY: "Policy decisions determine which energy technologies get built, and how fast.",
    Tag.EXPANSION: "Every new reactor adds around-the-clock zero-carbon electricity to the grid.",
    Tag.MARKETS: "Capital flows reveal where smart money is going in the clean energy transition.",
    Tag.RESEARCH: "Today's research milestones become tomorrow's operating power plants.",
    Tag.SAFETY: "Transparency about safety events is how the nuclear industry earns public trust.",
    Tag.INNOVATION: "Next-generation designs could make nuclear faster and cheaper to deploy.",
    Tag.INDUSTRY: "Industry moves show how the global nuclear fleet is evolving right now.",
}

# (upper bound in hours, points); anything older scores RECENCY_FLOOR.
RECENCY_BUCKETS = (
    (1, 35),
    (6, 30),
    (24, 25),
    (48, 18),
    (24 * 7, 12),
    (24 * 30, 7),
)
RECENCY_FLOOR = 3

MIN_EXCERPT_CHARS = 20

_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def infer_tag(title: str, description: str = "") -> Tag:
    text = f"{title} {description}"
    for tag, pattern in TAG_RULES:
        if pattern.search(text):
            return tag
    return Tag.INDUSTRY


def why_it_matters(tag: Tag) -> str:
    return WHY_IT_MATTERS.get(tag, WHY_IT_MATTERS[Tag.INDUSTRY])


def relevance_score(title: str, description: str = "") -> int:
    """Score nuclear relevance from 0 to 10, two points per distinct keyword."""

    text = f"{title} {description}".lower()
    hits = sum(1 for pattern in _KEYWORD_PATTERNS if pattern.search(text))
    return min(10, hits * 2)


def recency_points(published_at: Optional[datetime], now: datetime) -> int:
    if published_at is None:
        return 0
    hours = (now - published_at).total_seconds() / 3600
    for limit, points in RECENCY_BUCKETS:
        if hours < limit:
            return points
    return RECENCY_FLOOR


def engagement_score(
    title: str,
    trust: int,
    published_at: Optional[datetime],
    relevance: int,
    now: datetime,
) -> int:
    """Composite 0-100 score combining recency, publisher trust, relevance and title shape."""

    score = float(recency_points(published_at, now))
    score += min(20, trust * 2)
    score += min(25, relevance * 2.5)

    if 40 <= len(title) <= 100:
        score += 8
    if any(char.isdigit() for char in title):
        score += 5
    if "?" in title:
        score += 4
    if title:
        score += 3

    return int(round(min(100, score)))


def extract_excerpt(description: str, budget: int = 280) -> Optional[str]:
    """Return the first one or two sentences of ``description`` within ``budget`` characters."""

    text = strip_html(description)
    sentences = [match.group(0).strip() for match in _SENTENCE.finditer(text)]

    excerpt = ""
    for sentence in sentences[:2]:
        candidate = f"{excerpt} {sentence}".strip()
        if len(candidate) > budget:
            if not excerpt:
                excerpt = sentence[:budget].rsplit(" ", 1)[0].rstrip(",;:") + "…"
            break
        excerpt = candidate

    return excerpt if len(excerpt) > MIN_EXCERPT_CHARS else None


def relative_label(published_at: datetime, now: datetime) -> str:
    """Human friendly age such as ``Just now``, ``5h ago``, ``3d ago`` or ``Oct 5``."""

    hours = int((now - published_at).total_seconds() // 3600)
    days = hours // 24
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    if days < 7:
        return f"{days}d ago"

    label = f"{published_at:%b} {published_at.day}"
    if days > 365:
        label += f", {published_at.year}"
    return label
