"""Grouping of normalized events into sealed, partitioned batches.

Events are grouped by (log type, time partition). A batch is sealed when it
reaches the size threshold, when its oldest event exceeds the age threshold,
or on shutdown. A sealed batch is immutable; later events for the same key
open a new batch.
"""

import gzip
import hashlib
import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from lognorm.logtypes.catalog import table_name
from lognorm.pipeline.events import NormalizedEvent

logger = logging.getLogger(__name__)

GRANULARITIES = ("hour", "day")


def partition_key(event_time: datetime, granularity: str = "hour") -> str:
    """Time partition of an event, e.g. year=2021/month=01/day=01/hour=00.

    Event times are truncated in UTC.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"unknown partition granularity {granularity!r}")
    t = event_time.astimezone(UTC) if event_time.tzinfo else event_time
    key = f"year={t.year:04d}/month={t.month:02d}/day={t.day:02d}"
    if granularity == "hour":
        key += f"/hour={t.hour:02d}"
    return key


@dataclass(frozen=True, order=True)
class BatchKey:
    log_type: str
    partition: str


@dataclass(frozen=True)
class Batch:
    """A sealed group of events for one log type and partition."""

    key: BatchKey
    events: tuple[NormalizedEvent, ...]

    @property
    def batch_id(self) -> str:
        digest = hashlib.sha256()
        for event in self.events:
            digest.update(event.row_id.encode("ascii"))
        return digest.hexdigest()[:24]

    def __len__(self) -> int:
        return len(self.events)

    def object_key(self, prefix: str = "") -> str:
        """Storage key, deterministic for a given set of events."""
        key = f"{table_name(self.key.log_type)}/{self.key.partition}/{self.batch_id}.json.gz"
        return f"{prefix.strip('/')}/{key}" if prefix.strip("/") else key

    def to_jsonl(self) -> bytes:
        return b"".join(
            json.dumps(event.to_dict(), separators=(",", ":")).encode("utf-8") + b"\n"
            for event in self.events
        )

    def to_jsonl_gz(self) -> bytes:
        # mtime=0 keeps output byte-identical across runs
        return gzip.compress(self.to_jsonl(), mtime=0)


class _OpenBatch:
    __slots__ = ("events", "opened_at")

    def __init__(self, opened_at: float):
        self.events: list[NormalizedEvent] = []
        self.opened_at = opened_at


class OutputBatcher:
    """Accumulates events of one worker into open batches.

    Not thread-safe; each worker owns its own batcher.
    """

    def __init__(
        self,
        max_events: int = 10000,
        max_age_seconds: float = 60.0,
        granularity: str = "hour",
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_events < 1:
            raise ValueError("max_events must be at least 1")
        if granularity not in GRANULARITIES:
            raise ValueError(f"unknown partition granularity {granularity!r}")
        self.max_events = max_events
        self.max_age_seconds = max_age_seconds
        self.granularity = granularity
        self._clock = clock
        self._open: dict[BatchKey, _OpenBatch] = {}

    def key_for(self, event: NormalizedEvent) -> BatchKey:
        return BatchKey(event.log_type, partition_key(event.event_time, self.granularity))

    def accept(self, event: NormalizedEvent) -> list[Batch]:
        """Add an event to its batch.

        Returns:
            Batches sealed because they reached the size threshold
        """
        key = self.key_for(event)
        open_batch = self._open.get(key)
        if open_batch is None:
            open_batch = _OpenBatch(self._clock())
            self._open[key] = open_batch
        open_batch.events.append(event)

        if len(open_batch.events) >= self.max_events:
            return [self.seal(key)]
        return []

    def seal(self, key: BatchKey) -> Batch:
        """Seal the open batch for a key.

        Raises:
            KeyError: if no batch is open for the key
        """
        open_batch = self._open.pop(key)
        batch = Batch(key=key, events=tuple(open_batch.events))
        logger.debug("Sealed batch %s/%s with %d events", key.log_type, key.partition, len(batch))
        return batch

    def seal_expired(self, now: float | None = None) -> list[Batch]:
        """Seal batches whose oldest event is older than the age threshold."""
        if now is None:
            now = self._clock()
        expired = [
            key
            for key, open_batch in self._open.items()
            if now - open_batch.opened_at >= self.max_age_seconds
        ]
        return [self.seal(key) for key in sorted(expired)]

    def seal_all(self) -> list[Batch]:
        """Seal every open batch regardless of thresholds."""
        return [self.seal(key) for key in sorted(self._open)]

    @property
    def pending_events(self) -> int:
        return sum(len(open_batch.events) for open_batch in self._open.values())

    def open_keys(self) -> list[BatchKey]:
        return sorted(self._open)
