"""RSS feed collector with async support."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import feedparser
import httpx

from news_curator.collectors.base import BaseCollector
from news_curator.exceptions import IngestionError
from news_curator.models import RawEntry, SourceConfig

logger = logging.getLogger(__name__)


class RSSCollector(BaseCollector):
    """Collector for RSS/Atom feeds."""

    def __init__(
        self,
        timeout: int = 30,
        max_concurrent: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self.transport = transport
        self.failures: list[str] = []
        self._semaphore: asyncio.Semaphore | None = None

    async def fetch(self, source: SourceConfig) -> list[RawEntry]:
        """Fetch and parse one feed.

        Raises:
            IngestionError: If the feed cannot be downloaded or parsed
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": "NewsCurator/1.0"},
                transport=self.transport,
            ) as client:
                response = await client.get(source.url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IngestionError(source.url, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise IngestionError(source.url, f"request failed: {e}") from e

        feed = feedparser.parse(response.content)
        if feed.bozo and not feed.entries:
            raise IngestionError(source.url, f"parse error: {feed.bozo_exception}")

        return [self._parse_entry(entry, source) for entry in feed.entries]

    async def collect(self, source: SourceConfig) -> list[RawEntry]:
        """Collect entries from a single feed, or none if it fails."""
        try:
            entries = await self.fetch(source)
        except IngestionError as e:
            logger.error(f"Ingestion failed for {source.name}: {e}")
            self.failures.append(str(e))
            return []
        except Exception as e:
            error = IngestionError(source.url, f"unexpected error: {e}")
            logger.error(f"Unexpected error for {source.name}: {error}")
            self.failures.append(str(error))
            return []

        logger.info(f"Collected {len(entries)} entries from {source.name}")
        return entries

    async def collect_all(self, sources: list[SourceConfig]) -> list[RawEntry]:
        """Collect entries from all sources concurrently."""
        self.failures = []
        self._semaphore = asyncio.Semaphore(self.max_concurrent)

        async def collect_with_semaphore(source: SourceConfig) -> list[RawEntry]:
            async with self._semaphore:  # type: ignore
                return await self.collect(source)

        tasks = [collect_with_semaphore(source) for source in sources]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        all_entries = []
        for result in results:
            if isinstance(result, list):
                all_entries.extend(result)
            elif isinstance(result, Exception):
                logger.error(f"Collection task failed: {result}")
                self.failures.append(str(result))
        return all_entries

    def _parse_entry(self, entry: Any, source: SourceConfig) -> RawEntry:
        """Map a feedparser entry onto a RawEntry.

        Date parsing is left to normalization; only feedparser's own parsed
        struct is converted here.
        """
        summary = entry.get("summary") or entry.get("description") or ""

        published: datetime | str | None = None
        for key in ("published_parsed", "updated_parsed"):
            parsed = entry.get(key)
            if parsed:
                published = datetime(*parsed[:6], tzinfo=timezone.utc)
                break
        else:
            published = entry.get("published") or entry.get("updated")

        return RawEntry(
            uid=entry.get("id") or None,
            title=entry.get("title", ""),
            summary=summary,
            link=entry.get("link") or None,
            published=published,
            summary_format=source.summary_format,
            source_url=source.url,
        )
