"""Base collector interface."""

from abc import ABC, abstractmethod

from news_curator.models import RawEntry, SourceConfig


class BaseCollector(ABC):
    """Abstract base class for feed collectors."""

    @abstractmethod
    async def collect(self, source: SourceConfig) -> list[RawEntry]:
        """Collect entries from a single source.

        Failures are handled per source: a source that cannot be read
        contributes no entries.

        Args:
            source: Source configuration

        Returns:
            List of raw entries in feed order
        """
        ...

    @abstractmethod
    async def collect_all(self, sources: list[SourceConfig]) -> list[RawEntry]:
        """Collect entries from every source.

        Args:
            sources: List of source configurations

        Returns:
            Entries of all sources concatenated in source order
        """
        ...
