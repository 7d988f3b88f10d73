"""Convenience script for running the news aggregator locally."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

# Ensure the src directory is on the Python path so the nuclearpulse package can be imported
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from nuclearpulse.config import FeedRegistry  # noqa: E402  (import after path setup)
from nuclearpulse.services.aggregator import NewsAggregator  # noqa: E402


def main() -> None:
    """Load the feed registry, build one digest and print it as JSON."""

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    registry_path = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        registry = FeedRegistry.load(registry_path)
    except (FileNotFoundError, ValueError) as exc:
        logging.error("Could not load feed registry: %s", exc)
        sys.exit(1)

    aggregator = NewsAggregator(registry)
    articles = aggregator.aggregate()

    if articles and all(article.is_fallback for article in articles):
        logging.warning("Live feeds unavailable, showing curated articles")
    logging.info("Collected %d articles, %d items rejected", len(articles), len(aggregator.rejections))

    print(json.dumps([article.model_dump(mode="json") for article in articles], indent=2))


if __name__ == "__main__":
    main()
