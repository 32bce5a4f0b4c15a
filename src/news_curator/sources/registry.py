"""Source registry for loading feed configurations."""

import logging
from pathlib import Path
from urllib.parse import urlparse

import yaml

from news_curator.config import Settings
from news_curator.models import SourceConfig, SummaryFormat

logger = logging.getLogger(__name__)

DEFAULT_FEEDS_PATH = Path(__file__).parent / "feeds.yaml"


def load_sources(feeds_path: Path | None = None) -> list[SourceConfig]:
    """Load enabled source configurations from a YAML file."""
    if feeds_path is None:
        feeds_path = DEFAULT_FEEDS_PATH

    with open(feeds_path) as f:
        data = yaml.safe_load(f) or {}

    sources = []
    for source_data in data.get("sources", []):
        try:
            source = SourceConfig(
                name=source_data.get("name") or urlparse(source_data["url"]).netloc,
                url=source_data["url"],
                summary_format=SummaryFormat(source_data.get("format", "plain")),
                enabled=source_data.get("enabled", True),
            )
            if source.enabled:
                sources.append(source)
        except (KeyError, ValueError) as e:
            # Log error but continue loading other sources
            logger.warning(f"Failed to load source {source_data.get('name', 'unknown')}: {e}")

    return sources


def resolve_sources(settings: Settings) -> list[SourceConfig]:
    """Feeds from the environment when given, else from the registry file."""
    if settings.plain_feed_list or settings.html_feed_list:
        return [
            SourceConfig(name=urlparse(url).netloc or url, url=url, summary_format=fmt)
            for urls, fmt in (
                (settings.plain_feed_list, SummaryFormat.PLAIN),
                (settings.html_feed_list, SummaryFormat.HTML),
            )
            for url in urls
        ]
    return load_sources(settings.feeds_path)
