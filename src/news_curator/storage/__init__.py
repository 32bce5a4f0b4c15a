"""Search index storage."""

from news_curator.storage.index import ArticleIndex

__all__ = ["ArticleIndex"]
