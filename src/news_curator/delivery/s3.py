"""Publish the digest to an S3 bucket."""

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from news_curator.delivery.base import CONTENT_TYPE, BasePublisher
from news_curator.exceptions import PublishError

logger = logging.getLogger(__name__)


class S3Publisher(BasePublisher):
    """Upload the digest as a single S3 object."""

    def __init__(
        self,
        bucket: str,
        key: str,
        region: str | None = None,
        client: Any = None,
    ):
        self.bucket = bucket
        self.key = key
        # Credentials come from the ambient AWS configuration
        self.client = client or boto3.client("s3", region_name=region)

    def publish(self, payload: str) -> str:
        destination = f"s3://{self.bucket}/{self.key}"
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=payload.encode("utf-8"),
                ContentType=CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as e:
            raise PublishError(f"Upload to {destination} failed: {e}") from e

        logger.info(f"Digest uploaded to {destination}")
        return destination
