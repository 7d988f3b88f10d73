"""Feed registry and pipeline settings for the Nuclear Pulse news aggregator."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError, model_validator

__all__ = [
    "DEFAULT_CHANNELS",
    "DEFAULT_REGISTRY_PATH",
    "DEFAULT_SOURCES",
    "FeedRegistry",
    "PipelineSettings",
    "SourceDescriptor",
]

DEFAULT_REGISTRY_PATH = Path(__file__).resolve().parents[2] / "data" / "feeds.json"

#: Retrieval channels tried in order. ``{url}`` is the raw endpoint and
#: ``{quoted}`` the percent-encoded endpoint for pass-through proxies.
DEFAULT_CHANNELS = [
    "{url}",
    "https://api.allorigins.win/raw?url={quoted}",
]


class SourceDescriptor(BaseModel):
    """A syndication feed that contributes articles to the digest."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique key used for caching and diversity caps")
    name: str = Field(..., description="Human friendly publisher name")
    url: HttpUrl = Field(..., description="RSS or Atom endpoint")
    trust: int = Field(default=5, ge=0, le=10, description="Publisher reputation score")
    strict_topic_filter: bool = Field(
        default=True,
        description=(
            "Whether the feed only publishes nuclear news. Items from feeds where this is "
            "false must pass the keyword relevance check."
        ),
    )


class PipelineSettings(BaseModel):
    """Static tuning knobs for fetching, validation and ranking."""

    cache_ttl: float = Field(default=15 * 60, gt=0, description="Seconds a cached feed or digest stays fresh")
    max_age_days: int = Field(default=30, gt=0, description="Freshness window for published articles")
    max_per_feed: int = Field(default=8, gt=0)
    max_diversity: int = Field(default=3, gt=0, description="Maximum articles kept per source")
    max_total: int = Field(default=30, gt=0)
    fetch_timeout: float = Field(default=6.0, gt=0, description="Seconds allowed per retrieval attempt")
    min_relevance: int = Field(default=2, ge=0, le=10)
    excerpt_chars: int = Field(default=280, gt=0)
    max_workers: int = Field(default=8, gt=0)
    channels: List[str] = Field(default_factory=lambda: list(DEFAULT_CHANNELS), min_length=1)


def _source(source_id: str, name: str, url: str, trust: int, strict: bool) -> SourceDescriptor:
    return SourceDescriptor(id=source_id, name=name, url=url, trust=trust, strict_topic_filter=strict)


DEFAULT_SOURCES = [
    _source("wnn", "World Nuclear News", "https://www.world-nuclear-news.org/rss", 10, True),
    _source("nucnet", "NucNet", "https://www.nucnet.org/feed", 10, True),
    _source("ans", "ANS Nuclear Newswire", "https://www.ans.org/news/rss/", 9, True),
    _source(
        "nrc_news",
        "US Nuclear Regulatory Commission",
        "https://www.nrc.gov/public-involve/rss?feed=news",
        10,
        True,
    ),
    _source("power_mag", "Power Magazine", "https://www.powermag.com/feed/", 7, False),
    _source("neutron_bytes", "Neutron Bytes", "https://neutronbytes.com/feed/", 7, True),
    _source("nei_mag", "Nuclear Engineering International", "https://www.neimagazine.com/rss/", 8, True),
    _source("iaea", "IAEA", "https://www.iaea.org/feeds/topnews", 10, False),
    _source("doe_ne", "US Dept of Energy - Nuclear", "https://www.energy.gov/ne/rss.xml", 9, True),
    _source("eia_energy", "EIA Today in Energy", "https://www.eia.gov/rss/todayinenergy.xml", 8, False),
    _source("mining_uranium", "Mining.com - Uranium", "https://www.mining.com/feed/?s=uranium", 7, True),
    _source("atomic_insights", "Atomic Insights", "https://atomicinsights.com/feed/", 7, True),
    _source("env_progress", "Environmental Progress", "https://environmentalprogress.org/feed", 8, True),
    _source("breakthrough", "Breakthrough Institute", "https://thebreakthrough.org/feed", 7, False),
]


class FeedRegistry(BaseModel):
    """Collection of :class:`SourceDescriptor` entries plus pipeline settings."""

    sources: List[SourceDescriptor] = Field(default_factory=lambda: list(DEFAULT_SOURCES))
    settings: PipelineSettings = Field(default_factory=PipelineSettings)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "FeedRegistry":
        seen: set[str] = set()
        for source in self.sources:
            if source.id in seen:
                raise ValueError(f"Duplicate source id: {source.id}")
            seen.add(source.id)
        return self

    @classmethod
    def from_file(cls, path: Path | str | None = None) -> "FeedRegistry":
        """Load the registry from a JSON file."""

        config_path = Path(path) if path else DEFAULT_REGISTRY_PATH
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise FileNotFoundError(f"Registry file not found: {config_path}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in registry file: {config_path}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Registry file is invalid: {config_path}\n{exc}") from exc

    @classmethod
    def load(cls, path: Path | str | None = None) -> "FeedRegistry":
        """Return the registry at ``path``, the default file, or the built-in sources.

        An explicit ``path`` must exist. Without one, ``data/feeds.json`` is used
        when present and the built-in registry otherwise.
        """

        if path is not None:
            return cls.from_file(path)
        if DEFAULT_REGISTRY_PATH.exists():
            return cls.from_file(DEFAULT_REGISTRY_PATH)
        return cls()

    def dump(self, path: Path | str | None = None) -> None:
        """Persist the registry back to disk as JSON."""

        config_path = Path(path) if path else DEFAULT_REGISTRY_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(self.model_dump_json(indent=2), encoding="utf-8")

    def iter_sources(self) -> Iterable[SourceDescriptor]:
        """Iterate over configured sources in registry order."""

        return iter(self.sources)

    def get(self, source_id: str) -> SourceDescriptor | None:
        """Return the source registered under ``source_id`` if any."""

        return next((source for source in self.sources if source.id == source_id), None)
