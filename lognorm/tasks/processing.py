"""Celery tasks for processing raw sources.

Handles one source per task: classification, parsing, normalization and
batch output, returning the stream report as the task result.
"""

import asyncio
import logging
from typing import Any

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded

from lognorm.config import get_settings
from lognorm.exceptions import SinkError
from lognorm.logtypes.registry import Registry, bootstrap_registry

logger = logging.getLogger(__name__)

_registry: Registry | None = None


def get_worker_registry() -> Registry:
    """The registry of this worker process, built on first use.

    A registry error propagates; the process must not serve tasks without
    a valid registry.
    """
    global _registry
    if _registry is None:
        _registry = bootstrap_registry()
    return _registry


async def run_source(
    location: str,
    log_type: str | None = None,
    sink_backend: str | None = None,
    cancel: asyncio.Event | None = None,
) -> dict[str, Any]:
    """Process one source with a single stream worker."""
    from lognorm.bootstrap import build_classifier, open_source
    from lognorm.pipeline.worker import WorkerPool
    from lognorm.sinks import init_sink

    settings = get_settings()
    registry = get_worker_registry()
    classifier = build_classifier(registry, settings, log_type)
    sink = await init_sink(settings, sink_backend)
    try:
        pool = WorkerPool.from_settings(settings, registry, classifier, sink)
        reports = await pool.run([open_source(location, settings)], cancel)
    finally:
        await sink.disconnect()
    return reports[0].to_dict()


async def sink_health(sink_backend: str | None = None) -> dict[str, Any]:
    """Connect to the configured sink and report its health."""
    from lognorm.sinks import init_sink

    try:
        sink = await init_sink(get_settings(), sink_backend)
    except SinkError as e:
        return {"status": "unhealthy", "backend": sink_backend or get_settings().sink_backend, "error": e.message}
    try:
        return await sink.health_check()
    finally:
        await sink.disconnect()


@shared_task(
    bind=True,
    name="lognorm.process_source",
    max_retries=3,
    default_retry_delay=60,
    soft_time_limit=7000,
    time_limit=7200,
)
def process_source(
    self,
    location: str,
    log_type: str | None = None,
    sink_backend: str | None = None,
) -> dict[str, Any]:
    """Process one source into partitioned batches.

    Args:
        location: Local path or s3:// URL of the source
        log_type: Log type for every record; prefix rules apply when unset
        sink_backend: Overrides the configured sink backend

    Returns:
        Stream report with per log type counts and error samples
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(run_source(location, log_type, sink_backend))
    except SoftTimeLimitExceeded:
        logger.error("Processing %s exceeded time limit", location)
        raise
    except SinkError as e:
        logger.warning("Sink unavailable for %s, retrying: %s", location, e)
        raise self.retry(exc=e)
    finally:
        loop.close()
