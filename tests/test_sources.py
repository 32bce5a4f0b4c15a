"""Tests for the feed registry."""

from pathlib import Path

from news_curator.config import Settings
from news_curator.models import SummaryFormat
from news_curator.sources import load_sources, resolve_sources


class TestLoadSources:
    """Tests for load_sources."""

    def test_bundled_registry(self):
        """Test that the bundled feeds load with both summary formats."""
        sources = load_sources()
        formats = {s.summary_format for s in sources}

        assert sources
        assert formats == {SummaryFormat.PLAIN, SummaryFormat.HTML}
        assert all(s.enabled for s in sources)

    def test_skips_disabled_and_malformed(self, tmp_path: Path):
        feeds = tmp_path / "feeds.yaml"
        feeds.write_text(
            """
sources:
  - name: Good
    url: https://good.example.com/rss
    format: html
  - name: Off
    url: https://off.example.com/rss
    enabled: false
  - name: Missing URL
  - name: Bad format
    url: https://bad.example.com/rss
    format: markdown
"""
        )
        sources = load_sources(feeds)
        assert [s.name for s in sources] == ["Good"]
        assert sources[0].summary_format == SummaryFormat.HTML


class TestResolveSources:
    """Tests for resolve_sources."""

    def test_environment_lists_take_precedence(self, settings: Settings):
        with_html = settings.model_copy(
            update={"html_feeds": "https://html.example.com/feed, https://other.example.com/x"}
        )
        sources = resolve_sources(with_html)

        assert [s.url for s in sources] == [
            "https://feeds.example.com/plain.xml",
            "https://html.example.com/feed",
            "https://other.example.com/x",
        ]
        assert [s.summary_format for s in sources] == [
            SummaryFormat.PLAIN,
            SummaryFormat.HTML,
            SummaryFormat.HTML,
        ]
        assert sources[0].name == "feeds.example.com"

    def test_falls_back_to_registry(self, settings: Settings):
        registry_only = settings.model_copy(update={"plain_feeds": ""})
        assert resolve_sources(registry_only) == load_sources()
