"""News Curator: ranked, deduplicated news digests from RSS feeds."""

__version__ = "0.1.0"
