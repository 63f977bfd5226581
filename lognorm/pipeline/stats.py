"""Per log type counters and bounded error samples."""

from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from typing import Any

from lognorm.exceptions import RecordError

# Log type bucket for records that never resolved to a log type
UNCLASSIFIED = "unclassified"


@dataclass
class ErrorSample:
    source_id: str
    offset: int
    kind: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "offset": self.offset,
            "kind": self.kind,
            "message": self.message,
        }


class PipelineStats:
    """Event and error counts, keyed by log type.

    Operators look at rates per log type and error kind; only a bounded
    number of samples per (log type, kind) is kept for reproduction.
    """

    def __init__(self, sample_size: int = 10):
        self.sample_size = sample_size
        self.records: Counter[str] = Counter()
        self.events: Counter[str] = Counter()
        self.errors: dict[str, Counter[str]] = defaultdict(Counter)
        self.samples: dict[tuple[str, str], deque[ErrorSample]] = {}
        self.batches_written = 0
        self.batches_failed = 0

    def record_read(self, log_type: str) -> None:
        self.records[log_type] += 1

    def event_emitted(self, log_type: str, count: int = 1) -> None:
        self.events[log_type] += count

    def record_error(
        self,
        log_type: str | None,
        error: RecordError,
        source_id: str,
        offset: int,
    ) -> None:
        bucket = log_type or UNCLASSIFIED
        self.errors[bucket][error.kind] += 1
        samples = self.samples.get((bucket, error.kind))
        if samples is None:
            samples = self.samples[(bucket, error.kind)] = deque(maxlen=self.sample_size)
        samples.append(ErrorSample(source_id, offset, error.kind, error.message))

    def batch_written(self) -> None:
        self.batches_written += 1

    def batch_failed(self) -> None:
        self.batches_failed += 1

    @property
    def total_events(self) -> int:
        return sum(self.events.values())

    @property
    def total_errors(self) -> int:
        return sum(sum(kinds.values()) for kinds in self.errors.values())

    def error_count(self, log_type: str | None = None, kind: str | None = None) -> int:
        buckets = [self.errors.get(log_type, Counter())] if log_type else self.errors.values()
        if kind is None:
            return sum(sum(kinds.values()) for kinds in buckets)
        return sum(kinds[kind] for kinds in buckets)

    def merge(self, other: "PipelineStats") -> None:
        """Add another worker's counts into this one."""
        self.records.update(other.records)
        self.events.update(other.events)
        for log_type, kinds in other.errors.items():
            self.errors[log_type].update(kinds)
        for key, samples in other.samples.items():
            target = self.samples.get(key)
            if target is None:
                target = self.samples[key] = deque(maxlen=self.sample_size)
            target.extend(samples)
        self.batches_written += other.batches_written
        self.batches_failed += other.batches_failed

    def summary(self) -> dict[str, Any]:
        log_types = sorted(set(self.records) | set(self.events) | set(self.errors))
        return {
            "events": self.total_events,
            "errors": self.total_errors,
            "batches_written": self.batches_written,
            "batches_failed": self.batches_failed,
            "log_types": {
                name: {
                    "records": self.records[name],
                    "events": self.events[name],
                    "errors": dict(self.errors.get(name, {})),
                }
                for name in log_types
            },
            "samples": [
                sample.to_dict()
                for key in sorted(self.samples)
                for sample in self.samples[key]
            ],
        }


@dataclass
class StreamReport:
    """Outcome of one worker processing one source."""

    source_id: str
    stats: PipelineStats = field(default_factory=PipelineStats)
    cancelled: bool = False
    failed: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {"source_id": self.source_id, "cancelled": self.cancelled, **self.stats.summary()}
        if self.failed:
            result["failed"] = self.failed
        return result
