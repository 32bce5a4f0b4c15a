"""Publish the digest to a local file."""

import logging
from pathlib import Path

from news_curator.delivery.base import BasePublisher
from news_curator.exceptions import PublishError

logger = logging.getLogger(__name__)


class FilePublisher(BasePublisher):
    """Write the digest to a path on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def publish(self, payload: str) -> str:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise PublishError(f"Failed to write digest to {self.path}: {e}") from e

        logger.info(f"Digest written to {self.path}")
        return str(self.path)
