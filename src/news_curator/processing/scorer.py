"""Relevance scoring and recency ranking.

The score is the product of three factors:

* term match: how many search terms occur in the article body (zero excludes
  the article entirely),
* recency: a Gaussian decay on article age, scaled so it equals ``decay`` at
  ``scale`` and weighted by ``decay_weight``,
* spam demotion: ``spam_weight`` once per spam phrase found.

``relevance`` is the single definition of the formula. The search index calls it
from SQL, and ``score_candidates`` applies it locally to an article pool, so both
paths select and order candidates identically.
"""

import logging
import math
import re
from datetime import datetime, timedelta
from functools import lru_cache

from news_curator.models import Article, ScoredCandidate, ScoringQuery
from news_curator.processing.spam import find_spam_terms

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def _term_pattern(term: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)", re.IGNORECASE)


def recency_factor(
    update_date: datetime,
    origin: datetime,
    scale: timedelta = timedelta(days=3),
    decay: float = 0.5,
) -> float:
    """Gaussian decay ``exp(-0.5 * (dt / sigma)^2)``, equal to ``decay`` at ``scale``."""
    distance = abs((origin - update_date).total_seconds())
    sigma = scale.total_seconds() / math.sqrt(-2.0 * math.log(decay))
    return math.exp(-0.5 * (distance / sigma) ** 2)


def term_matches(text: str, search_terms: list[str]) -> int:
    """Count the search terms occurring in text as whole words."""
    if "*" in search_terms:
        return 1
    return sum(1 for term in search_terms if term and _term_pattern(term).search(text))


def relevance(
    title_text: str, main_text: str, update_date: datetime, query: ScoringQuery
) -> float:
    """Score one article's fields against the query."""
    matches = term_matches(main_text, query.search_terms)
    if matches == 0:
        return 0.0

    score = matches * query.decay_weight
    score *= recency_factor(update_date, query.origin, query.scale, query.decay)
    for _ in find_spam_terms(title_text, main_text, query.spam_terms):
        score *= query.spam_weight
    return score


def score_article(article: Article, query: ScoringQuery) -> float:
    """Score an article against the query."""
    return relevance(article.title_text, article.main_text, article.update_date, query)


def score_candidates(articles: list[Article], query: ScoringQuery) -> list[ScoredCandidate]:
    """Select the candidate pool locally.

    Args:
        articles: Article pool in insertion order
        query: Scoring directives

    Returns:
        Top ``query.size`` matching articles by descending score, ties in
        insertion order
    """
    scored = []
    for article in articles:
        score = score_article(article, query)
        if score > 0:
            scored.append(ScoredCandidate(article=article, relevance_score=score))

    scored.sort(key=lambda c: c.relevance_score, reverse=True)
    logger.info(f"Scored {len(articles)} articles locally, {len(scored)} matched")
    return scored[: query.size]


def rank(candidates: list[ScoredCandidate]) -> list[ScoredCandidate]:
    """Order candidates most-recent-first; equal dates keep their pool order."""
    return sorted(candidates, key=lambda c: c.article.update_date, reverse=True)
