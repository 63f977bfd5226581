"""Local filesystem source, plain or gzip-compressed."""

import gzip
import logging
import os
from collections.abc import AsyncIterator
from datetime import datetime

import aiofiles

from lognorm.sources.base import RawSource, split_lines

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class LocalFileSource(RawSource):
    """Lines of a local file.

    The source id defaults to the absolute path, so prefix classification
    rules can match on directories.
    """

    def __init__(self, path: str, source_id: str | None = None, ingest_time: datetime | None = None):
        self.path = path
        super().__init__(source_id or os.path.abspath(path), ingest_time)

    async def read_lines(self) -> AsyncIterator[bytes]:
        async with aiofiles.open(self.path, "rb") as f:
            head = await f.read(2)
            await f.seek(0)
            if head == GZIP_MAGIC:
                data = gzip.decompress(await f.read())
                logger.debug("Decompressed %s (%d bytes)", self.path, len(data))
                for line in split_lines(data):
                    yield line
                return
            async for line in f:
                yield line.rstrip(b"\n")
