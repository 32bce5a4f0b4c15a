"""Feed source configuration and registry."""

from news_curator.sources.registry import load_sources, resolve_sources

__all__ = ["load_sources", "resolve_sources"]
