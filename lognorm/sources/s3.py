"""S3 object source.

boto3 calls are blocking and run in a worker thread.
"""

import asyncio
import gzip
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

from botocore.exceptions import BotoCoreError, ClientError

from lognorm.sources.base import RawSource, split_lines
from lognorm.sources.local import GZIP_MAGIC

logger = logging.getLogger(__name__)


def parse_s3_url(url: str) -> tuple[str, str]:
    """Split s3://bucket/key into (bucket, key)."""
    parsed = urlparse(url)
    if parsed.scheme != "s3" or not parsed.netloc or not parsed.path.strip("/"):
        raise ValueError(f"not an S3 object URL: {url!r}")
    return parsed.netloc, parsed.path.lstrip("/")


class S3Source(RawSource):
    """Lines of one S3 object. The source id is its s3:// URL."""

    def __init__(self, client: Any, bucket: str, key: str, ingest_time: datetime | None = None):
        super().__init__(f"s3://{bucket}/{key}", ingest_time)
        self._client = client
        self.bucket = bucket
        self.key = key

    @classmethod
    def from_url(cls, client: Any, url: str, ingest_time: datetime | None = None) -> "S3Source":
        bucket, key = parse_s3_url(url)
        return cls(client, bucket, key, ingest_time)

    async def read_lines(self) -> AsyncIterator[bytes]:
        try:
            data = await asyncio.to_thread(self._get_object)
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to read %s: %s", self.source_id, e)
            raise
        if data[:2] == GZIP_MAGIC:
            data = gzip.decompress(data)
        for line in split_lines(data):
            yield line

    def _get_object(self) -> bytes:
        response = self._client.get_object(Bucket=self.bucket, Key=self.key)
        return response["Body"].read()
