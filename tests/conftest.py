"""Pytest fixtures for tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest

from news_curator.config import Settings
from news_curator.models import Article, RawEntry, SummaryFormat
from news_curator.storage import ArticleIndex

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant."""
    return NOW


@pytest.fixture
def make_article() -> Callable[..., Article]:
    """Factory for normalized articles."""

    def _make(
        uid: str,
        main_text: str = "A routine space update",
        title_text: str = "Space update",
        age: timedelta = timedelta(0),
    ) -> Article:
        return Article(
            uid=uid,
            title_text=title_text,
            main_text=main_text,
            update_date=NOW - age,
            redirection_url=f"https://example.com/{uid}",
        )

    return _make


@pytest.fixture
def sample_raw_entry() -> RawEntry:
    """Create a sample raw entry with an HTML summary."""
    return RawEntry(
        uid="guid-1",
        title="  Rocket\tlaunch  today ",
        summary="<p>The <b>rocket</b>\n launched&nbsp;at dawn.</p><!-- tracking -->",
        link="https://example.com/rocket",
        published="Mon, 19 Oct 2026 10:00:00 GMT",
        summary_format=SummaryFormat.HTML,
        source_url="https://example.com/rss",
    )


@pytest.fixture
def temp_index_path(tmp_path: Path) -> Path:
    """Create a temporary index path."""
    return tmp_path / "test_index.db"


@pytest.fixture
def index(temp_index_path: Path) -> ArticleIndex:
    """Create an empty test index."""
    return ArticleIndex(temp_index_path)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        index_path=tmp_path / "test_index.db",
        search_terms="space,launch,satellite",
        spam_terms="find out,students,12 reasons,star trek",
        publish_target="file",
        output_path=tmp_path / "digest.json",
        plain_feeds="https://feeds.example.com/plain.xml",
        html_feeds="",
    )
