"""Data models for feed entries, articles and curation runs."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SummaryFormat(str, Enum):
    """How a feed encodes its entry summaries."""

    PLAIN = "plain"
    HTML = "html"


class SourceConfig(BaseModel):
    """Configuration for a feed source."""

    name: str
    url: str
    summary_format: SummaryFormat = SummaryFormat.PLAIN
    enabled: bool = True


class RawEntry(BaseModel):
    """Entry as collected from a feed, before normalization."""

    uid: str | None = None
    title: str = ""
    summary: str = ""
    link: str | None = None
    published: datetime | str | None = None
    summary_format: SummaryFormat = SummaryFormat.PLAIN
    source_url: str = ""

    @field_validator("title", "summary", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Feeds omit fields freely; treat missing text as empty."""
        if v is None:
            return ""
        return v


class Article(BaseModel):
    """Normalized article. Immutable; serialized with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    uid: str
    title_text: str
    main_text: str
    update_date: datetime
    redirection_url: str = ""

    @field_validator("update_date")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken to be UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def text(self) -> str:
        """Title and body joined for whole-article matching."""
        return f"{self.title_text} {self.main_text}"


class ScoredCandidate(BaseModel):
    """Article with the relevance score that admitted it to the candidate pool."""

    article: Article
    relevance_score: float = Field(ge=0)


class ScoringQuery(BaseModel):
    """Scoring directives handed to the index, or evaluated locally."""

    model_config = ConfigDict(frozen=True)

    search_terms: list[str]
    spam_terms: list[str] = Field(default_factory=list)
    size: int = Field(default=100, gt=0)
    origin: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    scale: timedelta = timedelta(days=3)
    decay: float = Field(default=0.5, gt=0, lt=1)
    decay_weight: float = Field(default=5.0, gt=0)
    spam_weight: float = Field(default=0.001, ge=0)

    @field_validator("origin")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("scale")
    @classmethod
    def positive_scale(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("scale must be positive")
        return v

    @property
    def matches_everything(self) -> bool:
        """A bare ``*`` search term selects every indexed article."""
        return "*" in self.search_terms

    def to_dsl(self, field: str = "mainText", date_field: str = "updateDate") -> dict[str, Any]:
        """Render the directives as an Elasticsearch ``function_score`` body."""
        date_function = {
            "weight": self.decay_weight,
            "gauss": {
                date_field: {
                    "origin": self.origin.isoformat(),
                    "scale": f"{self.scale.total_seconds() / 86400:g}d",
                    "decay": self.decay,
                },
            },
        }
        spam_functions = [
            {
                "filter": {
                    "multi_match": {"query": term, "type": "phrase", "fields": ["titleText", field]}
                },
                "weight": self.spam_weight,
            }
            for term in self.spam_terms
        ]
        return {
            "size": self.size,
            "query": {
                "function_score": {
                    "query": {
                        "query_string": {
                            "default_field": field,
                            "query": " OR ".join(self.search_terms),
                        },
                    },
                    "score_mode": "multiply",
                    "boost_mode": "multiply",
                    "functions": [date_function, *spam_functions],
                },
            },
        }


class CurationStats(BaseModel):
    """Statistics from a curation run."""

    sources_attempted: int = 0
    sources_succeeded: int = 0
    entries_collected: int = 0
    entries_dropped: int = 0
    articles_indexed: int = 0
    candidates: int = 0
    after_spam_filter: int = 0
    after_dedup: int = 0
    published: int = 0
    errors: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0


class CurationRun(BaseModel):
    """State of one pipeline invocation."""

    operations: list[str]
    query: ScoringQuery | None = None
    max_articles: int
    candidates: list[ScoredCandidate] = Field(default_factory=list)
    published: list[Article] = Field(default_factory=list)
    payload: str | None = None
    destination: str | None = None
    stats: CurationStats = Field(default_factory=CurationStats)
