"""Tests for the SQLite article index."""

import sqlite3
from datetime import timedelta

import pytest

from news_curator.exceptions import BackendError
from news_curator.models import ScoringQuery
from news_curator.processing.scorer import score_candidates
from news_curator.storage import ArticleIndex
from news_curator.storage.index import match_expression


@pytest.fixture
def query(now) -> ScoringQuery:
    return ScoringQuery(
        search_terms=["space", "launch", "satellite"],
        spam_terms=["find out", "star trek"],
        origin=now,
    )


class TestArticleIndex:
    """Tests for ArticleIndex."""

    def test_init_creates_tables(self, index: ArticleIndex):
        """Test that initialization creates the document and FTS tables."""
        conn = sqlite3.connect(index.db_path)
        tables = {
            row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
        conn.close()

        assert "articles" in tables
        assert "articles_fts" in tables

    def test_upsert(self, index: ArticleIndex, make_article):
        written = index.upsert([make_article("a1"), make_article("a2")])
        assert written == 2
        assert index.count() == 2

    def test_upsert_same_uid_replaces(self, index: ArticleIndex, make_article):
        """Test that re-indexing a uid overwrites the stored document."""
        index.upsert([make_article("a1", main_text="First body about space")])
        index.upsert([make_article("a1", main_text="Second body about launch")])

        assert index.count() == 1
        assert index.get("a1").main_text == "Second body about launch"

    def test_upsert_same_uid_in_one_batch(self, index: ArticleIndex, make_article):
        """Test that the latest duplicate within a batch wins."""
        index.upsert(
            [
                make_article("a1", main_text="Old body"),
                make_article("a1", main_text="New body"),
            ]
        )
        assert index.count() == 1
        assert index.get("a1").main_text == "New body"

    def test_replaced_body_is_searchable(self, index: ArticleIndex, make_article):
        """Test that the full-text index follows document replacement."""
        index.upsert([make_article("a1", main_text="Comet sighting")])
        index.upsert([make_article("a1", main_text="Rover landing")])

        assert index.search_text("comet") == []
        assert [a.uid for a in index.search_text("rover")] == ["a1"]

    def test_round_trip_preserves_fields(self, index: ArticleIndex, make_article):
        article = make_article("a1", age=timedelta(hours=5))
        index.upsert([article])
        assert index.get("a1") == article

    def test_get_missing(self, index: ArticleIndex):
        assert index.get("nope") is None

    def test_reset(self, index: ArticleIndex, make_article):
        """Test that reset drops all documents and keeps the index usable."""
        index.upsert([make_article("a1")])
        index.reset()

        assert index.count() == 0
        index.upsert([make_article("a2")])
        assert index.count() == 1

    def test_search_excludes_non_matching(self, index: ArticleIndex, make_article, query):
        index.upsert(
            [
                make_article("hit", main_text="Satellite enters orbit"),
                make_article("miss", main_text="Farm subsidy vote"),
            ]
        )
        assert [c.article.uid for c in index.search(query)] == ["hit"]

    def test_search_orders_by_score(self, index: ArticleIndex, make_article, query):
        index.upsert(
            [
                make_article("one-term", main_text="Space news"),
                make_article("old", main_text="Space launch satellite", age=timedelta(days=6)),
                make_article("three-terms", main_text="Space launch satellite"),
                make_article("spam", main_text="Space launch satellite, find out more"),
            ]
        )
        pool = index.search(query)

        assert [c.article.uid for c in pool] == ["three-terms", "one-term", "old", "spam"]
        assert pool[0].relevance_score == pytest.approx(15.0)

    def test_search_size_cap(self, index: ArticleIndex, make_article, now):
        index.upsert([make_article(f"a{i}", main_text="Space") for i in range(5)])
        query = ScoringQuery(search_terms=["space"], size=3, origin=now)
        assert [c.article.uid for c in index.search(query)] == ["a0", "a1", "a2"]

    def test_wildcard_search(self, index: ArticleIndex, make_article, now):
        """Test that a bare * selects every document."""
        index.upsert([make_article("a1", main_text="Anything"), make_article("a2")])
        query = ScoringQuery(search_terms=["*"], origin=now)
        assert len(index.search(query)) == 2

    def test_backend_and_local_scoring_agree(self, index: ArticleIndex, make_article, query):
        """Test that index-side and local scoring produce the same pool."""
        index.upsert(
            [
                make_article("a", main_text="Space station crew returns", age=timedelta(hours=3)),
                make_article("b", main_text="Launch of weather satellite", age=timedelta(days=1)),
                make_article("c", main_text="Bakery opens downtown"),
                make_article("d", main_text="Star Trek star visits space center"),
                make_article("e", main_text="Space launch satellite", age=timedelta(days=4)),
                make_article("f", main_text="Space station crew returns", age=timedelta(hours=3)),
                make_article(
                    "g", main_text="Satellite imagery of the storm", age=timedelta(days=2)
                ),
            ]
        )
        backend = index.search(query)
        local = score_candidates(index.all_articles(), query)

        assert [c.article.uid for c in backend] == [c.article.uid for c in local]
        assert [c.relevance_score for c in backend] == pytest.approx(
            [c.relevance_score for c in local]
        )

    def test_search_text(self, index: ArticleIndex, make_article):
        index.upsert(
            [
                make_article("a1", main_text="Earthquake strikes coast"),
                make_article("a2", main_text="Stock market reaches new high"),
            ]
        )
        results = index.search_text("earthquake")
        assert [a.uid for a in results] == ["a1"]

    def test_recent_and_stats(self, index: ArticleIndex, make_article):
        index.upsert(
            [
                make_article("old", age=timedelta(days=2)),
                make_article("new"),
            ]
        )
        assert [a.uid for a in index.recent(limit=1)] == ["new"]

        stats = index.get_stats()
        assert stats["total_articles"] == 2
        assert stats["newest"] > stats["oldest"]

    def test_corrupt_index_raises_backend_error(self, index: ArticleIndex, make_article):
        """Test that reads from a damaged index file surface as BackendError."""
        index.upsert([make_article("a1")])
        index.db_path.write_bytes(b"not a sqlite database " * 64)

        with pytest.raises(BackendError):
            index.get("a1")
        with pytest.raises(BackendError):
            index.recent()
        with pytest.raises(BackendError):
            index.get_stats()


def test_match_expression():
    """Test quoting of search terms for FTS5."""
    assert match_expression(["space", 'say "hi"']) == '"space" OR "say ""hi"""'
