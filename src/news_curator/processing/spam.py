"""Hard spam gate applied before deduplication."""

import logging
import re

from news_curator.models import Article

logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[',/=0-9().:@|\-]")


def light_normalize(text: str) -> str:
    """Lowercase and strip punctuation, digits and separators."""
    return _PUNCTUATION.sub("", text.lower()).replace("  ", " ").strip()


def find_spam_terms(title_text: str, main_text: str, spam_terms: list[str]) -> list[str]:
    """Return the spam phrases found in an article's title and body.

    A phrase matches as a case-insensitive substring of either the plain
    lowercased text or its light-normalized form.
    """
    body = f"{title_text} {main_text}".lower()
    normalized = light_normalize(body)
    found = []
    for term in spam_terms:
        needle = term.lower()
        if needle and (needle in body or needle in normalized):
            found.append(term)
    return found


class SpamFilter:
    """Reject articles containing any blocklisted phrase."""

    def __init__(self, spam_terms: list[str]):
        self.spam_terms = spam_terms

    def is_clean(self, article: Article) -> bool:
        """True when no spam phrase occurs in the article."""
        return not find_spam_terms(article.title_text, article.main_text, self.spam_terms)

    def filter(self, articles: list[Article]) -> list[Article]:
        """Keep the clean articles, preserving order."""
        clean = []
        for article in articles:
            if self.is_clean(article):
                clean.append(article)
            else:
                logger.debug(f"Spam filter removed: {article.title_text[:60]}")

        removed = len(articles) - len(clean)
        if removed:
            logger.info(f"Spam filter removed {removed} articles")
        return clean
