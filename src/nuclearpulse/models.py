"""Domain models used across the pipeline."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Tag(str, Enum):
    """Category assigned to every article."""

    POLICY = "Policy"
    EXPANSION = "Expansion"
    MARKETS = "Markets"
    RESEARCH = "Research"
    SAFETY = "Safety"
    INNOVATION = "Innovation"
    INDUSTRY = "Industry"


class RejectionReason(str, Enum):
    MISSING_TITLE = "missing-title"
    MISSING_URL = "missing-url"
    NON_ARTICLE_URL = "non-article-url"
    MISSING_DATE = "missing-date"
    STALE = "stale"
    OFF_TOPIC = "off-topic"


class RawItem(BaseModel):
    """An unvalidated entry lifted straight out of a feed document."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    link: str = ""
    description: str = ""
    published_text: str = ""
    source_id: str


class Article(BaseModel):
    """A validated, scored news article ready for presentation."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1)
    url: str = Field(..., description="Canonical article URL, unique within a digest")
    source: str
    tag: Tag
    published_at: Optional[datetime] = None
    date_label: str
    relevance_score: int = Field(..., ge=0, le=10)
    engagement_score: int = Field(..., ge=0, le=100)
    excerpt: Optional[str] = None
    why_it_matters: str
    source_id: str
    is_fallback: bool = False


class Rejection(BaseModel):
    """Diagnostic record for a feed item that did not become an article."""

    source_id: str
    title: str
    reason: RejectionReason
    detail: str = ""
