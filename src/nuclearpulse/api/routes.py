"""API routes exposing the news digest to the presentation layer."""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter, Response
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from nuclearpulse.models import Article, Rejection
from nuclearpulse.services.aggregator import get_aggregator
from nuclearpulse.services.curated import curated

logger = logging.getLogger(__name__)

router = APIRouter()


class NewsResponse(BaseModel):
    articles: List[Article] = Field(default_factory=list)
    live: bool = Field(..., description="False when the curated fallback is being served")


class RejectionsResponse(BaseModel):
    rejections: List[Rejection] = Field(default_factory=list)
    tally: Dict[str, int] = Field(default_factory=dict)


class SourceEntry(BaseModel):
    id: str
    name: str
    url: str
    trust: int
    strict_topic_filter: bool


class SourcesResponse(BaseModel):
    sources: List[SourceEntry] = Field(default_factory=list)


def _news_response(articles: List[Article]) -> NewsResponse:
    live = any(not article.is_fallback for article in articles)
    return NewsResponse(articles=articles, live=live)


@router.get("/news", response_model=NewsResponse)
async def retrieve_news() -> NewsResponse:
    """Return the ranked digest, regenerating it when the cache has expired."""

    articles = await run_in_threadpool(get_aggregator().aggregate)
    return _news_response(articles)


@router.get("/news/instant", response_model=NewsResponse)
async def retrieve_instant_news() -> NewsResponse:
    """Return the curated articles without touching the network."""

    return _news_response(curated())


@router.get("/news/rejections", response_model=RejectionsResponse)
async def list_rejections() -> RejectionsResponse:
    """Return the items rejected during the most recent regeneration."""

    log = get_aggregator().rejections
    return RejectionsResponse(rejections=log.entries(), tally=log.tally())


@router.delete("/news/cache", status_code=204)
async def clear_news_cache() -> Response:
    """Drop the cached digest so the next request fetches fresh feeds."""

    get_aggregator().clear_cache()
    logger.info("News digest cache cleared")
    return Response(status_code=204)


@router.get("/sources", response_model=SourcesResponse)
async def list_sources() -> SourcesResponse:
    """Return the configured feed registry."""

    registry = get_aggregator().registry
    return SourcesResponse(
        sources=[
            SourceEntry(
                id=source.id,
                name=source.name,
                url=str(source.url),
                trust=source.trust,
                strict_topic_filter=source.strict_topic_filter,
            )
            for source in registry.iter_sources()
        ]
    )
