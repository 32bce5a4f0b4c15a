"""Application configuration."""

from datetime import datetime, timedelta
from pathlib import Path

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from news_curator.exceptions import ConfigurationError
from news_curator.models import ScoringQuery


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    index_path: Path = Field(
        default=Path("data/news_index.db"), description="SQLite search index path"
    )
    feeds_path: Path | None = Field(
        default=None, description="Feed registry YAML (defaults to the bundled feeds.yaml)"
    )

    # Operations
    operations: str = Field(
        default="publish", description="Comma-separated: reconfigure, ingest, publish"
    )

    # Search / scoring
    search_terms: str = Field(default="*", description="Comma-separated search terms")
    spam_terms: str = Field(
        default="find out,students,12 reasons,star trek",
        description="Comma-separated spam phrases",
    )
    max_results: int = Field(default=100, description="Candidate pool size cap")
    decay_scale_days: float = Field(
        default=3.0, description="Age (days) at which the recency factor equals decay"
    )
    decay: float = Field(default=0.5, description="Recency factor at the decay scale")
    decay_weight: float = Field(default=5.0, description="Weight of the recency factor")
    spam_weight: float = Field(default=0.001, description="Score multiplier per spam term hit")
    scoring_mode: str = Field(default="backend", description="backend or local")

    # Curation
    max_articles: int = Field(default=10, description="Max articles in the published digest")
    dedup_strategy: str = Field(default="bigram", description="bigram or topic")
    dedup_bigram_threshold: int = Field(
        default=1, description="Bigram overlap above which a later article is a duplicate"
    )
    dedup_jaccard_threshold: float = Field(
        default=0.1, description="Topic Jaccard index above which a later article is a duplicate"
    )
    dedup_top_terms: int = Field(default=8, description="Topic terms kept per article")

    # Collection
    plain_feeds: str = Field(default="", description="Comma-separated plain-text feed URLs")
    html_feeds: str = Field(default="", description="Comma-separated HTML-summary feed URLs")
    collection_timeout: int = Field(
        default=30, description="Timeout for each feed request (seconds)"
    )
    max_concurrent_requests: int = Field(default=10, description="Max concurrent HTTP requests")

    # Publishing
    publish_target: str = Field(default="s3", description="s3 or file")
    bucket_name: str | None = Field(default=None, description="S3 bucket for the digest")
    bucket_key: str | None = Field(default=None, description="S3 object key for the digest")
    aws_region: str | None = Field(default=None, description="AWS region for the S3 client")
    output_path: Path = Field(
        default=Path("data/digest.json"), description="Digest path when publishing to a file"
    )
    raw_results_path: Path | None = Field(
        default=None, description="Dump the raw candidate pool here for tuning"
    )

    @property
    def operation_list(self) -> list[str]:
        """Parse the operation selector into a list."""
        return [op.lower() for op in _split(self.operations)]

    @property
    def search_term_list(self) -> list[str]:
        """Parse search terms into a list."""
        return _split(self.search_terms)

    @property
    def spam_term_list(self) -> list[str]:
        """Parse spam terms into a list."""
        return _split(self.spam_terms)

    @property
    def plain_feed_list(self) -> list[str]:
        return _split(self.plain_feeds)

    @property
    def html_feed_list(self) -> list[str]:
        return _split(self.html_feeds)

    def scoring_query(self, now: datetime | None = None) -> ScoringQuery:
        """Snapshot the scoring directives for one run.

        Raises:
            ConfigurationError: If a scoring setting is out of range
        """
        params = {
            "search_terms": self.search_term_list,
            "spam_terms": self.spam_term_list,
            "size": self.max_results,
            "scale": timedelta(days=self.decay_scale_days),
            "decay": self.decay,
            "decay_weight": self.decay_weight,
            "spam_weight": self.spam_weight,
        }
        if now is not None:
            params["origin"] = now
        try:
            return ScoringQuery(**params)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid scoring settings: {e}") from e
