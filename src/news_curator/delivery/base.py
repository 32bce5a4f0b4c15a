"""Base publisher interface and payload rendering."""

import json
from abc import ABC, abstractmethod

from news_curator.models import Article

CONTENT_TYPE = "application/json"


def render_payload(articles: list[Article]) -> str:
    """Pretty-printed JSON array of camelCase article records."""
    records = [article.model_dump(mode="json", by_alias=True) for article in articles]
    return json.dumps(records, indent=2)


class BasePublisher(ABC):
    """Abstract base class for digest destinations."""

    @abstractmethod
    def publish(self, payload: str) -> str:
        """Write the payload.

        Args:
            payload: UTF-8 JSON document

        Returns:
            Description of where the payload was written

        Raises:
            PublishError: If the write fails
        """
        ...
