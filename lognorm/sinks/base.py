"""Base interface for durable batch sinks."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from lognorm.pipeline.batcher import Batch


class SinkBackend(str, Enum):
    """Supported sink backends."""

    LOCAL = "local"
    S3 = "s3"
    MEMORY = "memory"


@dataclass
class SinkConfig:
    """Configuration for a batch sink."""

    backend: str = "local"
    path: str = "/var/lib/lognorm/output"
    bucket: str | None = None
    prefix: str = ""
    region: str | None = None
    access_key: str | None = None
    secret_key: str | None = None
    endpoint_url: str | None = None  # For S3-compatible storage (MinIO, etc.)

    def __post_init__(self) -> None:
        if self.backend == SinkBackend.S3 and not self.bucket:
            raise ValueError("s3 sink requires a bucket name")


class BatchSink(ABC):
    """Abstract base class for batch sinks.

    write_batch() must be safe to repeat for the same batch: object keys are
    deterministic, so a retried write overwrites the same object.
    """

    name: str = "base"

    def __init__(self, config: SinkConfig | None = None):
        self.config = config or SinkConfig(backend=self.name)
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    @abstractmethod
    async def write_batch(self, batch: Batch) -> str:
        """Persist one sealed batch.

        Returns:
            Location of the written object

        Raises:
            SinkError: if the batch could not be written
        """
        ...

    async def health_check(self) -> dict[str, Any]:
        return {"status": "healthy" if self._connected else "disconnected", "backend": self.name}
