"""Durable sinks for sealed batches."""

from lognorm.config import Settings
from lognorm.sinks.base import BatchSink, SinkBackend, SinkConfig

__all__ = [
    "BatchSink",
    "SinkBackend",
    "SinkConfig",
    "create_sink",
    "init_sink",
    "sink_config_from_settings",
]


def sink_config_from_settings(settings: Settings, backend: str | None = None) -> SinkConfig:
    return SinkConfig(
        backend=backend or settings.sink_backend,
        path=settings.sink_path,
        bucket=settings.sink_bucket,
        prefix=settings.sink_prefix,
        region=settings.sink_region,
        access_key=settings.sink_access_key,
        secret_key=settings.sink_secret_key,
        endpoint_url=settings.sink_endpoint_url,
    )


def create_sink(config: SinkConfig) -> BatchSink:
    """Create an unconnected sink for the configured backend."""
    if config.backend == SinkBackend.S3:
        from lognorm.sinks.s3 import S3BatchSink

        return S3BatchSink(config)
    if config.backend == SinkBackend.MEMORY:
        from lognorm.sinks.memory import MemoryBatchSink

        return MemoryBatchSink(config)
    if config.backend == SinkBackend.LOCAL:
        from lognorm.sinks.local import LocalBatchSink

        return LocalBatchSink(config)
    raise ValueError(f"unknown sink backend {config.backend!r}")


async def init_sink(settings: Settings, backend: str | None = None) -> BatchSink:
    """Create and connect the sink described by application settings.

    Raises:
        SinkError: if the sink cannot be reached
    """
    sink = create_sink(sink_config_from_settings(settings, backend))
    await sink.connect()
    return sink
