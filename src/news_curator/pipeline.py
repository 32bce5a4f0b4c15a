"""Curation pipeline orchestration.

A run performs any combination of three operations, always in this order:

1. ``reconfigure``: drop and recreate the search index
2. ``ingest``: fetch every feed, normalize entries, upsert them into the index
3. ``publish``: query candidates, sort by recency, drop spam, drop
   near-duplicates, truncate, and upload the digest
"""

import json
import logging
import time
from enum import Enum

from news_curator.collectors import BaseCollector, RSSCollector
from news_curator.config import Settings
from news_curator.delivery import BasePublisher, FilePublisher, S3Publisher, render_payload
from news_curator.exceptions import ConfigurationError, CuratorError
from news_curator.models import (
    Article,
    CurationRun,
    CurationStats,
    ScoredCandidate,
    ScoringQuery,
    SourceConfig,
)
from news_curator.processing import (
    BigramOverlapDetector,
    DuplicateDetector,
    Normalizer,
    SpamFilter,
    TopicJaccardDetector,
    rank,
    score_candidates,
)
from news_curator.sources import resolve_sources
from news_curator.storage import ArticleIndex

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """Operations a run can perform, declared in execution order."""

    RECONFIGURE = "reconfigure"
    INGEST = "ingest"
    PUBLISH = "publish"


def parse_operations(names: list[str]) -> list[Operation]:
    """Resolve operation names, ignoring unknown ones.

    Raises:
        ConfigurationError: If no recognized operation is named
    """
    selected = set()
    for name in names:
        try:
            selected.add(Operation(name.strip().lower()))
        except ValueError:
            logger.warning(f"Ignoring unknown operation: {name!r}")

    if not selected:
        choices = ", ".join(op.value for op in Operation)
        raise ConfigurationError(f"No operation selected; choose from: {choices}")
    return [op for op in Operation if op in selected]


def build_detector(settings: Settings) -> DuplicateDetector:
    """Duplicate detection strategy named by the settings."""
    if settings.dedup_strategy == "bigram":
        return BigramOverlapDetector(threshold=settings.dedup_bigram_threshold)
    if settings.dedup_strategy == "topic":
        return TopicJaccardDetector(
            threshold=settings.dedup_jaccard_threshold,
            top_k=settings.dedup_top_terms,
            common_terms=settings.search_term_list,
        )
    raise ConfigurationError(f"Unknown dedup strategy: {settings.dedup_strategy!r}")


def build_publisher(settings: Settings) -> BasePublisher:
    """Publish sink named by the settings."""
    if settings.publish_target == "file":
        return FilePublisher(settings.output_path)
    if settings.publish_target == "s3":
        if not settings.bucket_name or not settings.bucket_key:
            raise ConfigurationError("BUCKET_NAME and BUCKET_KEY are required to publish to S3")
        return S3Publisher(settings.bucket_name, settings.bucket_key, region=settings.aws_region)
    raise ConfigurationError(f"Unknown publish target: {settings.publish_target!r}")


class CurationPipeline:
    """Orchestrates index maintenance, ingestion and digest publishing."""

    def __init__(
        self,
        settings: Settings,
        index: ArticleIndex | None = None,
        collector: BaseCollector | None = None,
        publisher: BasePublisher | None = None,
        detector: DuplicateDetector | None = None,
    ):
        self.settings = settings
        self._index = index
        self._collector = collector
        self._publisher = publisher
        self._detector = detector
        self.normalizer = Normalizer()
        self.spam_filter = SpamFilter(settings.spam_term_list)

    @property
    def index(self) -> ArticleIndex:
        if self._index is None:
            self._index = ArticleIndex(self.settings.index_path)
        return self._index

    @property
    def collector(self) -> BaseCollector:
        if self._collector is None:
            self._collector = RSSCollector(
                timeout=self.settings.collection_timeout,
                max_concurrent=self.settings.max_concurrent_requests,
            )
        return self._collector

    @property
    def publisher(self) -> BasePublisher:
        if self._publisher is None:
            self._publisher = build_publisher(self.settings)
        return self._publisher

    @property
    def detector(self) -> DuplicateDetector:
        if self._detector is None:
            self._detector = build_detector(self.settings)
        return self._detector

    def validate(
        self, operations: list[Operation], dry_run: bool = False
    ) -> tuple[list[SourceConfig], ScoringQuery | None]:
        """Check everything the selected operations need, before any I/O.

        Returns:
            Feed sources to ingest (empty unless ingesting) and the scoring
            query (None unless publishing)

        Raises:
            ConfigurationError: On the first missing or invalid value
        """
        settings = self.settings
        if settings.max_articles <= 0:
            raise ConfigurationError("MAX_ARTICLES must be positive")
        if settings.scoring_mode not in ("backend", "local"):
            raise ConfigurationError(f"Unknown scoring mode: {settings.scoring_mode!r}")

        sources: list[SourceConfig] = []
        if Operation.INGEST in operations:
            try:
                sources = resolve_sources(settings)
            except OSError as e:
                raise ConfigurationError(f"Cannot read feed registry: {e}") from e
            if not sources:
                raise ConfigurationError("No feed sources configured for ingest")

        query = None
        if Operation.PUBLISH in operations:
            if not settings.search_term_list:
                raise ConfigurationError("SEARCH_TERMS must name at least one term")
            query = settings.scoring_query()
            # Resolve lazily-built components so bad settings fail here
            _ = self.detector
            if not dry_run:
                _ = self.publisher

        return sources, query

    def reconfigure(self) -> None:
        """Drop and recreate the search index."""
        logger.info("Reconfiguring index...")
        self.index.reset()

    async def ingest(self, sources: list[SourceConfig], stats: CurationStats) -> int:
        """Fetch, normalize and index articles from all sources.

        Returns:
            Number of articles written to the index
        """
        logger.info(f"Starting ingestion from {len(sources)} sources...")
        stats.sources_attempted = len(sources)

        entries = await self.collector.collect_all(sources)
        failures = getattr(self.collector, "failures", [])
        stats.errors.extend(failures)
        stats.sources_succeeded = len(sources) - len(failures)
        stats.entries_collected = len(entries)

        articles = self.normalizer.normalize_all(entries)
        stats.entries_dropped = len(entries) - len(articles)

        stats.articles_indexed = self.index.upsert(articles) if articles else 0
        logger.info(
            f"Ingested {stats.articles_indexed} articles from "
            f"{stats.sources_succeeded}/{stats.sources_attempted} sources"
        )
        return stats.articles_indexed

    def candidates(self, query: ScoringQuery) -> list[ScoredCandidate]:
        """Select the scored candidate pool from the index."""
        if self.settings.scoring_mode == "local":
            pool = score_candidates(self.index.all_articles(), query)
        else:
            pool = self.index.search(query)

        if self.settings.raw_results_path:
            self._dump_candidates(pool)
        return pool

    def _dump_candidates(self, pool: list[ScoredCandidate]) -> None:
        path = self.settings.raw_results_path
        path.parent.mkdir(parents=True, exist_ok=True)
        records = [c.model_dump(mode="json", by_alias=True) for c in pool]
        path.write_text(json.dumps(records, indent=2), encoding="utf-8")
        logger.debug(f"Raw candidate pool written to {path}")

    def curate(
        self, candidates: list[ScoredCandidate], stats: CurationStats | None = None
    ) -> list[Article]:
        """Sort by recency, drop spam and near-duplicates, and truncate."""
        stats = stats or CurationStats()
        stats.candidates = len(candidates)

        articles = [c.article for c in rank(candidates)]

        articles = self.spam_filter.filter(articles)
        stats.after_spam_filter = len(articles)

        articles = self.detector.dedup(articles)
        stats.after_dedup = len(articles)

        articles = articles[: self.settings.max_articles]
        stats.published = len(articles)

        logger.info(
            f"Curation: {stats.candidates} candidates -> {stats.after_spam_filter} clean "
            f"-> {stats.after_dedup} unique -> {stats.published} published"
        )
        return articles

    def publish(self, run: CurationRun, dry_run: bool = False) -> list[Article]:
        """Build the digest and upload it (unless dry run)."""
        logger.info("Publishing digest...")
        if run.query is None:
            run.query = self.settings.scoring_query()
        run.candidates = self.candidates(run.query)
        run.published = self.curate(run.candidates, run.stats)
        run.payload = render_payload(run.published)

        if dry_run:
            logger.info("Dry run: skipping upload")
        else:
            run.destination = self.publisher.publish(run.payload)
        return run.published

    async def run(self, operations: list[str] | None = None, dry_run: bool = False) -> CurationRun:
        """Run the selected operations.

        Args:
            operations: Operation names; defaults to the configured selector
            dry_run: Build the digest without uploading it

        Raises:
            ConfigurationError: Before any I/O, if the configuration is unusable
            CuratorError: If an operation fails
        """
        start_time = time.time()
        if operations is None:
            operations = self.settings.operation_list
        selected = parse_operations(operations)
        sources, query = self.validate(selected, dry_run=dry_run)

        run = CurationRun(
            operations=[op.value for op in selected],
            query=query,
            max_articles=self.settings.max_articles,
        )
        logger.info("=" * 50)
        logger.info(f"Starting curation run: {', '.join(run.operations)}")
        logger.info("=" * 50)

        for operation in selected:
            try:
                if operation == Operation.RECONFIGURE:
                    self.reconfigure()
                elif operation == Operation.INGEST:
                    await self.ingest(sources, run.stats)
                elif operation == Operation.PUBLISH:
                    self.publish(run, dry_run=dry_run)
            except CuratorError as e:
                logger.error(f"Operation {operation.value} failed: {e}")
                raise

        run.stats.duration_seconds = time.time() - start_time
        logger.info(f"Run complete in {run.stats.duration_seconds:.1f}s")
        return run
