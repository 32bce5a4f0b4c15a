"""Processing pipeline for articles."""

from news_curator.processing.deduplicator import (
    BigramOverlapDetector,
    DuplicateDetector,
    TopicJaccardDetector,
)
from news_curator.processing.normalizer import Normalizer
from news_curator.processing.scorer import rank, relevance, score_article, score_candidates
from news_curator.processing.spam import SpamFilter

__all__ = [
    "BigramOverlapDetector",
    "DuplicateDetector",
    "Normalizer",
    "SpamFilter",
    "TopicJaccardDetector",
    "rank",
    "relevance",
    "score_article",
    "score_candidates",
]
