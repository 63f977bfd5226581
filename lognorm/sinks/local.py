"""Local filesystem batch sink."""

import logging
import os
from typing import Any

import aiofiles
import aiofiles.os

from lognorm.exceptions import SinkError
from lognorm.pipeline.batcher import Batch
from lognorm.sinks.base import BatchSink, SinkConfig

logger = logging.getLogger(__name__)


class LocalBatchSink(BatchSink):
    """Writes gzipped JSON lines under a base directory.

    Files are written to a temporary name and renamed, so readers never
    see a partially written batch.
    """

    name = "local"

    def __init__(self, config: SinkConfig):
        super().__init__(config)
        self.base_path = config.path

    async def connect(self) -> None:
        try:
            await aiofiles.os.makedirs(self.base_path, exist_ok=True)
        except OSError as e:
            raise SinkError(f"Cannot create output directory {self.base_path}: {e}") from e
        self._connected = True
        logger.info("Local sink ready: %s", self.base_path)

    def _full_path(self, key: str) -> str:
        # Prevent directory traversal
        safe_key = os.path.normpath(key).lstrip(os.sep)
        return os.path.join(self.base_path, safe_key)

    async def write_batch(self, batch: Batch) -> str:
        key = batch.object_key(self.config.prefix)
        full_path = self._full_path(key)
        tmp_path = full_path + ".tmp"
        try:
            await aiofiles.os.makedirs(os.path.dirname(full_path), exist_ok=True)
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(batch.to_jsonl_gz())
            await aiofiles.os.replace(tmp_path, full_path)
        except OSError as e:
            raise SinkError(f"Failed to write {key}: {e}") from e
        logger.debug("Wrote %d events to %s", len(batch), full_path)
        return f"file://{full_path}"

    async def health_check(self) -> dict[str, Any]:
        try:
            stat = os.statvfs(self.base_path)
            return {
                "status": "healthy",
                "backend": "local",
                "path": self.base_path,
                "free_bytes": stat.f_bavail * stat.f_frsize,
            }
        except OSError as e:
            return {"status": "unhealthy", "backend": "local", "error": str(e)}
