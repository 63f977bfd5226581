"""Stream workers and the worker pool.

One worker owns one source end to end: its dispatcher, batcher and stats are
never shared. The registry and classifier are read-only and shared by all
workers. Cancellation is checked between raw records, so a record is always
either fully applied or not at all, and open batches are sealed and written
before a worker returns.
"""

import asyncio
import logging
import time
import zlib
from collections.abc import Callable, Iterable
from contextlib import aclosing

from botocore.exceptions import BotoCoreError, ClientError

from lognorm.config import Settings
from lognorm.exceptions import InternalRecordError, RecordError, SinkError, UnknownSourceError
from lognorm.logtypes.registry import Registry
from lognorm.parsers.base import RawRecord
from lognorm.pipeline.batcher import Batch, OutputBatcher
from lognorm.pipeline.classifier import Classifier, Dispatcher
from lognorm.pipeline.normalizer import Normalizer
from lognorm.pipeline.stats import PipelineStats, StreamReport
from lognorm.sinks.base import BatchSink
from lognorm.sources.base import RawSource

logger = logging.getLogger(__name__)

# Failures reading a source; the worker stops that source and keeps its output
SOURCE_ERRORS = (OSError, EOFError, zlib.error, BotoCoreError, ClientError)


class StreamWorker:
    """Processes one source at a time into batches written to a sink."""

    def __init__(
        self,
        registry: Registry,
        classifier: Classifier,
        sink: BatchSink,
        max_events: int = 10000,
        max_age_seconds: float = 60.0,
        granularity: str = "hour",
        sample_size: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.classifier = classifier
        self.sink = sink
        self.max_events = max_events
        self.max_age_seconds = max_age_seconds
        self.granularity = granularity
        self.sample_size = sample_size
        self.clock = clock
        self.normalizer = Normalizer()

    async def process(self, source: RawSource, cancel: asyncio.Event | None = None) -> StreamReport:
        """Process a source until it is exhausted or cancel is set."""
        report = StreamReport(source.source_id, PipelineStats(self.sample_size))
        dispatcher = Dispatcher(self.registry, self.classifier)
        batcher = OutputBatcher(self.max_events, self.max_age_seconds, self.granularity, self.clock)

        try:
            async with aclosing(source.records()) as records:
                async for raw in records:
                    if cancel is not None and cancel.is_set():
                        report.cancelled = True
                        logger.info("Cancelled %s at offset %d", source.source_id, raw.offset)
                        break
                    sealed = self.process_record(raw, dispatcher, batcher, report.stats)
                    sealed.extend(batcher.seal_expired())
                    await self._write(sealed, report.stats)
        except SOURCE_ERRORS as e:
            report.failed = str(e)
            logger.error("Reading %s failed: %s", source.source_id, e)
        except Exception as e:
            report.failed = f"{type(e).__name__}: {e}"
            logger.exception("Processing %s failed", source.source_id)
        finally:
            # Also runs when the task is cancelled
            await self._write(batcher.seal_all(), report.stats)

        logger.info(
            "Finished %s: %d events, %d errors, %d batches",
            source.source_id,
            report.stats.total_events,
            report.stats.total_errors,
            report.stats.batches_written,
        )
        return report

    def process_record(
        self,
        raw: RawRecord,
        dispatcher: Dispatcher,
        batcher: OutputBatcher,
        stats: PipelineStats,
    ) -> list[Batch]:
        """Classify, parse, normalize and batch one raw record.

        Per-record errors are counted and logged, never raised. Candidates
        failing validation are dropped individually. Unexpected exceptions
        from an adapter or the normalizer are counted as internal errors.

        Returns:
            Batches sealed on the size threshold
        """
        try:
            log_type = dispatcher.classify(raw)
        except UnknownSourceError as e:
            self._record_error(stats, None, e, raw)
            return []

        stats.record_read(log_type.name)
        try:
            candidates = dispatcher.dispatch(log_type.name, raw)
        except RecordError as e:
            self._record_error(stats, log_type.name, e, raw)
            return []
        except Exception as e:
            self._record_unexpected(stats, log_type.name, e, raw)
            return []

        sealed: list[Batch] = []
        for index, candidate in enumerate(candidates):
            try:
                event = self.normalizer.normalize(candidate, log_type, raw, index)
            except RecordError as e:
                self._record_error(stats, log_type.name, e, raw)
                continue
            except Exception as e:
                self._record_unexpected(stats, log_type.name, e, raw)
                continue
            stats.event_emitted(log_type.name)
            sealed.extend(batcher.accept(event))
        return sealed

    def _record_error(
        self,
        stats: PipelineStats,
        log_type: str | None,
        error: RecordError,
        raw: RawRecord,
    ) -> None:
        logger.debug("Dropped %s@%d (%s): %s", raw.source_id, raw.offset, error.kind, error.message)
        stats.record_error(log_type, error, raw.source_id, raw.offset)

    def _record_unexpected(
        self,
        stats: PipelineStats,
        log_type: str,
        error: Exception,
        raw: RawRecord,
    ) -> None:
        logger.exception("Unexpected error processing %s@%d", raw.source_id, raw.offset)
        stats.record_error(log_type, InternalRecordError(error), raw.source_id, raw.offset)

    async def _write(self, batches: list[Batch], stats: PipelineStats) -> None:
        for batch in batches:
            try:
                location = await self.sink.write_batch(batch)
            except SinkError as e:
                stats.batch_failed()
                logger.error("Failed to write batch of %d %s events: %s", len(batch), batch.key.log_type, e)
                continue
            stats.batch_written()
            logger.debug("Batch written: %s", location)


class WorkerPool:
    """Runs one stream worker per source with bounded concurrency."""

    def __init__(
        self,
        registry: Registry,
        classifier: Classifier,
        sink: BatchSink,
        concurrency: int = 8,
        **worker_options,
    ):
        self.registry = registry
        self.classifier = classifier
        self.sink = sink
        self.concurrency = concurrency
        self.worker_options = worker_options

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        registry: Registry,
        classifier: Classifier,
        sink: BatchSink,
    ) -> "WorkerPool":
        return cls(
            registry,
            classifier,
            sink,
            concurrency=settings.worker_concurrency,
            max_events=settings.batch_max_events,
            max_age_seconds=settings.batch_max_age_seconds,
            granularity=settings.partition_granularity,
            sample_size=settings.error_sample_size,
        )

    def new_worker(self) -> StreamWorker:
        return StreamWorker(self.registry, self.classifier, self.sink, **self.worker_options)

    async def run(
        self,
        sources: Iterable[RawSource],
        cancel: asyncio.Event | None = None,
    ) -> list[StreamReport]:
        """Process all sources, returning one report per source in input order."""
        semaphore = asyncio.Semaphore(self.concurrency)
        cancel = cancel or asyncio.Event()

        async def run_one(source: RawSource) -> StreamReport:
            async with semaphore:
                if cancel.is_set():
                    return StreamReport(source.source_id, cancelled=True)
                return await self.new_worker().process(source, cancel)

        reports = await asyncio.gather(*(run_one(source) for source in sources))
        total = merge_reports(reports)
        logger.info(
            "Processed %d sources: %d events, %d errors, %d batches written, %d failed",
            len(reports),
            total.total_events,
            total.total_errors,
            total.batches_written,
            total.batches_failed,
        )
        return list(reports)


def merge_reports(reports: Iterable[StreamReport]) -> PipelineStats:
    """Aggregate the stats of several stream reports."""
    total: PipelineStats | None = None
    for report in reports:
        if total is None:
            total = PipelineStats(report.stats.sample_size)
        total.merge(report.stats)
    return total or PipelineStats()
