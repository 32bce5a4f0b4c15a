"""Feed collectors."""

from news_curator.collectors.base import BaseCollector
from news_curator.collectors.rss import RSSCollector

__all__ = ["BaseCollector", "RSSCollector"]
