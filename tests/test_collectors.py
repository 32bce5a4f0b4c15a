"""Tests for the RSS collector."""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from news_curator.collectors import RSSCollector
from news_curator.exceptions import IngestionError
from news_curator.models import SourceConfig, SummaryFormat

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Space Feed</title>
    <link>https://good.example.com/</link>
    <description>Test feed</description>
    <item>
      <title>First launch</title>
      <link>https://good.example.com/1</link>
      <guid>guid-1</guid>
      <pubDate>Mon, 19 Oct 2026 10:00:00 GMT</pubDate>
      <description>&lt;p&gt;Rocket &lt;b&gt;lifts off&lt;/b&gt;&lt;/p&gt;</description>
    </item>
    <item>
      <title>Second launch</title>
      <link>https://good.example.com/2</link>
      <pubDate>whenever</pubDate>
      <description>Plain summary</description>
    </item>
  </channel>
</rss>
"""


def handler(request: httpx.Request) -> httpx.Response:
    if request.url.host == "good.example.com":
        return httpx.Response(200, content=RSS.encode("utf-8"))
    if request.url.host == "down.example.com":
        return httpx.Response(503)
    if request.url.host == "broken.example.com":
        raise RuntimeError("handler crashed")
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def collector() -> RSSCollector:
    return RSSCollector(transport=httpx.MockTransport(handler))


def source(host: str, fmt: SummaryFormat = SummaryFormat.HTML) -> SourceConfig:
    return SourceConfig(name=host, url=f"https://{host}/rss", summary_format=fmt)


class TestRSSCollector:
    """Tests for RSSCollector."""

    def test_fetch_parses_entries(self, collector: RSSCollector):
        """Test mapping feed items onto raw entries in feed order."""
        entries = asyncio.run(collector.fetch(source("good.example.com")))

        assert [e.title for e in entries] == ["First launch", "Second launch"]
        first, second = entries
        assert first.uid == "guid-1"
        assert first.link == "https://good.example.com/1"
        assert first.published == datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc)
        assert "<b>lifts off</b>" in first.summary
        assert first.summary_format == SummaryFormat.HTML
        assert first.source_url == "https://good.example.com/rss"

        # Unparsable dates are passed through for normalization to reject
        assert second.published == "whenever"

    def test_fetch_http_error(self, collector: RSSCollector):
        with pytest.raises(IngestionError, match="HTTP 503"):
            asyncio.run(collector.fetch(source("down.example.com")))

    def test_fetch_connection_error(self, collector: RSSCollector):
        with pytest.raises(IngestionError, match="request failed"):
            asyncio.run(collector.fetch(source("unreachable.example.com")))

    def test_failing_source_yields_nothing(self, collector: RSSCollector):
        """Test that a failing source is logged and skipped."""
        entries = asyncio.run(collector.collect(source("down.example.com")))
        assert entries == []
        assert len(collector.failures) == 1
        assert "down.example.com" in collector.failures[0]

    def test_collect_all_isolates_failures(self, collector: RSSCollector):
        """Test that one broken feed does not stop the others."""
        sources = [
            source("good.example.com"),
            source("down.example.com"),
            source("unreachable.example.com"),
            source("good.example.com", SummaryFormat.PLAIN),
        ]
        entries = asyncio.run(collector.collect_all(sources))

        assert len(entries) == 4
        assert [e.summary_format for e in entries] == [
            SummaryFormat.HTML,
            SummaryFormat.HTML,
            SummaryFormat.PLAIN,
            SummaryFormat.PLAIN,
        ]
        assert [e.title for e in entries[:2]] == ["First launch", "Second launch"]
        assert len(collector.failures) == 2

    def test_unexpected_error_is_isolated(self, collector: RSSCollector):
        """Test that a non-HTTP failure in one feed does not abort the others."""
        sources = [
            source("good.example.com"),
            source("broken.example.com"),
            SourceConfig(name="typo", url="http://"),
        ]
        entries = asyncio.run(collector.collect_all(sources))

        assert [e.title for e in entries] == ["First launch", "Second launch"]
        failed = sorted(f.split(": ")[0] for f in collector.failures)
        assert failed == ["http://", "https://broken.example.com/rss"]
