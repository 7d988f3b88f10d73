"""Nuclear Pulse package exposing the feed registry, news pipeline and API."""

from __future__ import annotations

from .config import FeedRegistry, PipelineSettings, SourceDescriptor  # noqa: F401
from .models import Article, RawItem, Tag  # noqa: F401

__all__ = ["Article", "FeedRegistry", "PipelineSettings", "RawItem", "SourceDescriptor", "Tag"]
