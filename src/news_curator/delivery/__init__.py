"""Publish sinks for the finished digest."""

from news_curator.delivery.base import BasePublisher, render_payload
from news_curator.delivery.local import FilePublisher
from news_curator.delivery.s3 import S3Publisher

__all__ = ["BasePublisher", "FilePublisher", "S3Publisher", "render_payload"]
