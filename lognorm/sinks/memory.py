"""In-memory batch sink."""

from lognorm.exceptions import SinkError
from lognorm.pipeline.batcher import Batch
from lognorm.pipeline.events import NormalizedEvent
from lognorm.sinks.base import BatchSink, SinkConfig


class MemoryBatchSink(BatchSink):
    """Keeps written batches by object key. Used by the API and in tests."""

    name = "memory"

    def __init__(self, config: SinkConfig | None = None, fail_log_types: set[str] | None = None):
        super().__init__(config)
        self.batches: dict[str, Batch] = {}
        self._fail_log_types = fail_log_types or set()

    async def write_batch(self, batch: Batch) -> str:
        key = batch.object_key(self.config.prefix)
        if batch.key.log_type in self._fail_log_types:
            raise SinkError(f"Failed to write {key}")
        self.batches[key] = batch
        return f"memory://{key}"

    @property
    def events(self) -> list[NormalizedEvent]:
        return [event for key in sorted(self.batches) for event in self.batches[key].events]
