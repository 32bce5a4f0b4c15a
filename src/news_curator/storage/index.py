"""SQLite full-text index backing the candidate query."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from news_curator.exceptions import BackendError
from news_curator.models import Article, ScoredCandidate, ScoringQuery
from news_curator.processing.scorer import relevance

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS articles (
        uid TEXT PRIMARY KEY,
        title_text TEXT NOT NULL,
        main_text TEXT NOT NULL,
        update_date TEXT NOT NULL,
        redirection_url TEXT NOT NULL DEFAULT '',
        indexed_at TIMESTAMP NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_articles_update_date
    ON articles(update_date DESC)
    """,
    # FTS5 over the body; the candidate query searches mainText only
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS articles_fts USING fts5(
        main_text,
        content='articles',
        content_rowid='rowid'
    )
    """,
    # Triggers to keep FTS in sync
    """
    CREATE TRIGGER IF NOT EXISTS articles_ai AFTER INSERT ON articles BEGIN
        INSERT INTO articles_fts(rowid, main_text) VALUES (new.rowid, new.main_text);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS articles_ad AFTER DELETE ON articles BEGIN
        INSERT INTO articles_fts(articles_fts, rowid, main_text)
        VALUES('delete', old.rowid, old.main_text);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS articles_au AFTER UPDATE ON articles BEGIN
        INSERT INTO articles_fts(articles_fts, rowid, main_text)
        VALUES('delete', old.rowid, old.main_text);
        INSERT INTO articles_fts(rowid, main_text) VALUES (new.rowid, new.main_text);
    END
    """,
)

_DROP = (
    "DROP TRIGGER IF EXISTS articles_ai",
    "DROP TRIGGER IF EXISTS articles_ad",
    "DROP TRIGGER IF EXISTS articles_au",
    "DROP TABLE IF EXISTS articles_fts",
    "DROP TABLE IF EXISTS articles",
)

_UPSERT = """
    INSERT INTO articles (uid, title_text, main_text, update_date, redirection_url, indexed_at)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT(uid) DO UPDATE SET
        title_text = excluded.title_text,
        main_text = excluded.main_text,
        update_date = excluded.update_date,
        redirection_url = excluded.redirection_url,
        indexed_at = excluded.indexed_at
"""


def match_expression(search_terms: list[str]) -> str:
    """OR-combine search terms as quoted FTS5 phrases."""
    phrases = []
    for term in search_terms:
        escaped = term.replace('"', '""')
        phrases.append(f'"{escaped}"')
    return " OR ".join(phrases)


class ArticleIndex:
    """Full-text article index keyed by article uid."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._ensure_directory()
        self._init_db()

    def _ensure_directory(self) -> None:
        """Ensure index directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        for statement in _SCHEMA:
            conn.execute(statement)

    def _init_db(self) -> None:
        """Create the schema if it does not exist yet."""
        try:
            with self._get_connection() as conn:
                self._create_schema(conn)
                conn.commit()
        except sqlite3.Error as e:
            raise BackendError(f"Failed to initialize index at {self.db_path}: {e}") from e
        logger.debug(f"Index initialized at {self.db_path}")

    def reset(self) -> None:
        """Drop the index and recreate it empty with the fixed schema."""
        try:
            with self._get_connection() as conn:
                for statement in _DROP:
                    conn.execute(statement)
                self._create_schema(conn)
                conn.commit()
        except sqlite3.Error as e:
            raise BackendError(f"Failed to reset index at {self.db_path}: {e}") from e
        logger.info(f"Index at {self.db_path} dropped and recreated")

    def upsert(self, articles: list[Article]) -> int:
        """Index articles in one batch, replacing documents that share a uid.

        Rows that fail are logged and skipped; rows already written stay.

        Returns:
            Number of articles written
        """
        indexed_at = datetime.now(timezone.utc).isoformat()
        written = 0
        try:
            with self._get_connection() as conn:
                for article in articles:
                    try:
                        conn.execute(
                            _UPSERT,
                            (
                                article.uid,
                                article.title_text,
                                article.main_text,
                                article.update_date.isoformat(),
                                article.redirection_url,
                                indexed_at,
                            ),
                        )
                        written += 1
                    except sqlite3.IntegrityError as e:
                        logger.error(f"Failed to index {article.uid}: {e}")
                conn.commit()
        except sqlite3.Error as e:
            raise BackendError(f"Bulk upsert failed after {written} documents: {e}") from e

        failed = len(articles) - written
        if failed:
            logger.warning(f"Indexed {written} articles, {failed} failed")
        else:
            logger.info(f"Indexed {written} articles")
        return written

    def search(self, query: ScoringQuery) -> list[ScoredCandidate]:
        """Run the scored candidate query.

        The scoring directives are executed inside SQLite through the
        ``relevance`` function, so the returned pool is already ordered by
        score (ties in insertion order) and capped at ``query.size``.
        """

        def score(title_text: str, main_text: str, update_date: str) -> float:
            return relevance(title_text, main_text, datetime.fromisoformat(update_date), query)

        sql = """
            SELECT * FROM (
                SELECT a.rowid AS doc_order, a.*,
                       relevance(a.title_text, a.main_text, a.update_date) AS score
                FROM articles a
                {join}
            )
            WHERE score > 0
            ORDER BY score DESC, doc_order
            LIMIT ?
        """
        params: list = []
        if query.matches_everything:
            sql = sql.format(join="")
        else:
            sql = sql.format(
                join="JOIN articles_fts fts ON a.rowid = fts.rowid WHERE articles_fts MATCH ?"
            )
            params.append(match_expression(query.search_terms))
        params.append(query.size)

        try:
            with self._get_connection() as conn:
                conn.create_function("relevance", 3, score, deterministic=True)
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise BackendError(f"Candidate query failed: {e}") from e

        logger.info(f"Index returned {len(rows)} candidates")
        return [
            ScoredCandidate(article=self._row_to_article(row), relevance_score=row["score"])
            for row in rows
        ]

    def search_text(self, text: str, limit: int = 20) -> list[Article]:
        """Plain full-text search, most recent first."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT a.* FROM articles a
                    JOIN articles_fts fts ON a.rowid = fts.rowid
                    WHERE articles_fts MATCH ?
                    ORDER BY a.update_date DESC
                    LIMIT ?
                    """,
                    (text, limit),
                ).fetchall()
        except sqlite3.Error as e:
            raise BackendError(f"Search for {text!r} failed: {e}") from e
        return [self._row_to_article(row) for row in rows]

    def get(self, uid: str) -> Article | None:
        """Fetch one article by uid."""
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT * FROM articles WHERE uid = ?", (uid,)).fetchone()
        except sqlite3.Error as e:
            raise BackendError(f"Failed to read {uid!r}: {e}") from e
        return self._row_to_article(row) if row else None

    def all_articles(self) -> list[Article]:
        """Every indexed article in insertion order."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute("SELECT * FROM articles ORDER BY rowid").fetchall()
        except sqlite3.Error as e:
            raise BackendError(f"Failed to read index: {e}") from e
        return [self._row_to_article(row) for row in rows]

    def recent(self, limit: int = 10) -> list[Article]:
        """Most recently published articles."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM articles ORDER BY update_date DESC LIMIT ?", (limit,)
                ).fetchall()
        except sqlite3.Error as e:
            raise BackendError(f"Failed to read index: {e}") from e
        return [self._row_to_article(row) for row in rows]

    def get_stats(self) -> dict:
        """Document count and publication date range."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT COUNT(*) AS total, MIN(update_date) AS oldest, "
                    "MAX(update_date) AS newest FROM articles"
                ).fetchone()
        except sqlite3.Error as e:
            raise BackendError(f"Failed to read index stats: {e}") from e
        return {
            "total_articles": row["total"],
            "oldest": row["oldest"],
            "newest": row["newest"],
        }

    def count(self) -> int:
        """Number of indexed documents."""
        return self.get_stats()["total_articles"]

    def _row_to_article(self, row: sqlite3.Row) -> Article:
        """Convert database row to Article."""
        return Article(
            uid=row["uid"],
            title_text=row["title_text"],
            main_text=row["main_text"],
            update_date=datetime.fromisoformat(row["update_date"]),
            redirection_url=row["redirection_url"],
        )
