"""Near-duplicate detection over a ranked article list."""

import logging
import math
from abc import ABC, abstractmethod
from collections import Counter

from news_curator.models import Article

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    {
        "a",
        "about",
        "after",
        "all",
        "also",
        "an",
        "and",
        "any",
        "are",
        "as",
        "at",
        "be",
        "been",
        "but",
        "by",
        "can",
        "could",
        "did",
        "do",
        "does",
        "for",
        "from",
        "had",
        "has",
        "have",
        "he",
        "her",
        "his",
        "how",
        "i",
        "if",
        "in",
        "into",
        "is",
        "it",
        "its",
        "may",
        "more",
        "new",
        "not",
        "of",
        "on",
        "or",
        "our",
        "out",
        "over",
        "said",
        "she",
        "so",
        "than",
        "that",
        "the",
        "their",
        "them",
        "then",
        "there",
        "these",
        "they",
        "this",
        "to",
        "up",
        "was",
        "we",
        "were",
        "what",
        "when",
        "which",
        "who",
        "will",
        "with",
        "would",
        "you",
    }
)


def tokenize(text: str, stop_words: frozenset[str] = STOP_WORDS) -> list[str]:
    """Split on whitespace, lowercase, and drop stop-words."""
    return [token for token in text.lower().split() if token not in stop_words]


def bigrams(tokens: list[str]) -> list[tuple[str, str]]:
    """Adjacent token pairs."""
    return list(zip(tokens, tokens[1:]))


class DuplicateDetector(ABC):
    """Strategy for finding articles redundant with an earlier one."""

    @abstractmethod
    def detect(self, articles: list[Article]) -> set[int]:
        """Return the indices of articles to remove.

        Earlier articles have priority: an index is only ever marked because
        of an article before it.
        """
        ...

    def dedup(self, articles: list[Article]) -> list[Article]:
        """Remove duplicates, keeping the original order of the survivors."""
        to_remove = self.detect(articles)
        if to_remove:
            for index in sorted(to_remove):
                logger.debug(f"Removed duplicate: {articles[index].title_text[:50]}")
            logger.info(f"Deduplication removed {len(to_remove)} duplicate articles")
        return [article for index, article in enumerate(articles) if index not in to_remove]


class BigramOverlapDetector(DuplicateDetector):
    """Mark an article when it shares too many bigrams with an earlier one."""

    def __init__(self, threshold: int = 1, stop_words: frozenset[str] = STOP_WORDS):
        self.threshold = threshold
        self.stop_words = stop_words

    def overlap(self, left: set[tuple[str, str]], right: set[tuple[str, str]]) -> int:
        """Number of the left article's bigrams present in the right one."""
        return len(left & right)

    def detect(self, articles: list[Article]) -> set[int]:
        shingles = [set(bigrams(tokenize(a.text, self.stop_words))) for a in articles]
        to_remove: set[int] = set()

        for i in range(len(articles)):
            if i in to_remove:
                continue
            for j in range(i + 1, len(articles)):
                if j in to_remove:
                    continue
                if self.overlap(shingles[i], shingles[j]) > self.threshold:
                    to_remove.add(j)

        return to_remove


class TopicJaccardDetector(DuplicateDetector):
    """Compare per-article topic signatures with the Jaccard index.

    A signature is the article's ``top_k`` terms by TF-IDF weight across the
    batch, excluding stop-words and the configured search terms (which every
    candidate shares by construction).
    """

    def __init__(
        self,
        threshold: float = 0.1,
        top_k: int = 8,
        common_terms: list[str] | None = None,
        stop_words: frozenset[str] = STOP_WORDS,
    ):
        self.threshold = threshold
        self.top_k = top_k
        self.common_terms = {t.lower() for t in common_terms or []}
        self.stop_words = stop_words

    def _terms(self, article: Article) -> list[str]:
        words = (w.strip(".,;:!?\"'()[]") for w in article.main_text.lower().split())
        return [
            w for w in words
            if w and w.isalpha() and w not in self.stop_words and w not in self.common_terms
        ]

    def signatures(self, articles: list[Article]) -> list[set[str]]:
        """Top-K TF-IDF terms of each article."""
        documents = [Counter(self._terms(a)) for a in articles]
        document_frequency = Counter(term for doc in documents for term in doc)
        total = len(documents)

        signatures = []
        for doc in documents:
            # Smoothed IDF keeps terms shared by every document above zero
            weights = {
                term: count * (math.log((1 + total) / (1 + document_frequency[term])) + 1)
                for term, count in doc.items()
            }
            # Order by weight, then alphabetically so ties are deterministic
            ranked = sorted(weights, key=lambda term: (-weights[term], term))
            signatures.append(set(ranked[: self.top_k]))
        return signatures

    @staticmethod
    def jaccard(left: set[str], right: set[str]) -> float:
        union = left | right
        if not union:
            return 0.0
        return len(left & right) / len(union)

    def detect(self, articles: list[Article]) -> set[int]:
        signatures = self.signatures(articles)
        to_remove: set[int] = set()

        for i in range(len(articles)):
            if i in to_remove:
                continue
            for j in range(i + 1, len(articles)):
                if j in to_remove:
                    continue
                if self.jaccard(signatures[i], signatures[j]) > self.threshold:
                    to_remove.add(j)

        return to_remove
