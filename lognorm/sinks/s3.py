"""AWS S3 batch sink.

Supports AWS S3 and S3-compatible storage (MinIO, etc.). boto3 calls are
blocking and run in a worker thread.
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from lognorm.exceptions import SinkError
from lognorm.pipeline.batcher import Batch
from lognorm.sinks.base import BatchSink, SinkConfig

logger = logging.getLogger(__name__)


def create_s3_client(
    region: str | None = None,
    access_key: str | None = None,
    secret_key: str | None = None,
    endpoint_url: str | None = None,
) -> Any:
    """Build a boto3 S3 client. Missing credentials fall back to the default chain."""
    client_kwargs: dict[str, Any] = {}
    if region:
        client_kwargs["region_name"] = region
    if access_key and secret_key:
        client_kwargs["aws_access_key_id"] = access_key
        client_kwargs["aws_secret_access_key"] = secret_key
    if endpoint_url:
        client_kwargs["endpoint_url"] = endpoint_url
    client_kwargs["config"] = BotoConfig(retries={"max_attempts": 3, "mode": "adaptive"})
    return boto3.client("s3", **client_kwargs)


class S3BatchSink(BatchSink):
    """Writes gzipped JSON lines as S3 objects."""

    name = "s3"

    def __init__(self, config: SinkConfig, client: Any = None):
        super().__init__(config)
        self._client = client

    async def connect(self) -> None:
        if self._client is None:
            self._client = create_s3_client(
                self.config.region,
                self.config.access_key,
                self.config.secret_key,
                self.config.endpoint_url,
            )
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self.config.bucket)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            raise SinkError(f"S3 bucket {self.config.bucket} not accessible ({error_code})") from e
        except BotoCoreError as e:
            raise SinkError(f"Failed to connect to S3: {e}") from e
        self._connected = True
        logger.info("S3 sink connected: %s", self.config.bucket)

    async def disconnect(self) -> None:
        self._client = None
        self._connected = False

    async def write_batch(self, batch: Batch) -> str:
        if self._client is None:
            raise SinkError("S3 client not connected")
        key = batch.object_key(self.config.prefix)
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.config.bucket,
                Key=key,
                Body=batch.to_jsonl_gz(),
                ContentType="application/x-ndjson",
                ContentEncoding="gzip",
            )
        except (BotoCoreError, ClientError) as e:
            raise SinkError(f"Failed to upload {key}: {e}") from e
        logger.debug("Uploaded %d events to s3://%s/%s", len(batch), self.config.bucket, key)
        return f"s3://{self.config.bucket}/{key}"

    async def health_check(self) -> dict[str, Any]:
        if self._client is None:
            return {"status": "disconnected", "backend": "s3"}
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self.config.bucket)
        except (BotoCoreError, ClientError) as e:
            return {"status": "unhealthy", "backend": "s3", "error": str(e)}
        return {
            "status": "healthy",
            "backend": "s3",
            "bucket": self.config.bucket,
            "region": self.config.region,
            "endpoint": self.config.endpoint_url,
        }
