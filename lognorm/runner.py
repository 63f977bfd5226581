"""Local worker pool runner.

Usage:
    lognorm-run --log-type Zeek.DNS /data/zeek/dns.log.gz
    lognorm-run --sink s3 s3://bucket/cloudtrail/file.json.gz

Without --log-type, sources are classified by the configured source rules
(LOGNORM_SOURCE_RULES). SIGINT and SIGTERM stop the workers at the next
record boundary; open batches are still written.
"""

import argparse
import asyncio
import json
import logging
import signal
import sys

from lognorm.bootstrap import build_classifier, configure_logging, open_source
from lognorm.config import Settings, get_settings
from lognorm.exceptions import ClassifierConfigError, RegistryError, SinkError
from lognorm.logtypes.registry import bootstrap_registry
from lognorm.pipeline.worker import WorkerPool, merge_reports
from lognorm.sinks import init_sink

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_STARTUP = 2


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="lognorm-run", description="Normalize raw log sources")
    parser.add_argument("sources", nargs="+", metavar="PATH", help="Local path or s3:// URL")
    parser.add_argument("--log-type", help="Parse every source as this log type")
    parser.add_argument("--sink", choices=["local", "s3"], help="Override the configured sink")
    parser.add_argument("--report", action="store_true", help="Print the per-source reports as JSON")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    try:
        registry = bootstrap_registry()
        classifier = build_classifier(registry, settings, args.log_type)
    except (RegistryError, ClassifierConfigError) as e:
        logger.error("Startup failed: %s", e)
        return EXIT_STARTUP

    try:
        sink = await init_sink(settings, args.sink)
    except SinkError as e:
        logger.error("Startup failed: %s", e)
        return EXIT_STARTUP

    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, cancel.set)

    try:
        sources = [open_source(location, settings) for location in args.sources]
        pool = WorkerPool.from_settings(settings, registry, classifier, sink)
        reports = await pool.run(sources, cancel)
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        await sink.disconnect()

    if args.report:
        json.dump([report.to_dict() for report in reports], sys.stdout, indent=2)
        sys.stdout.write("\n")

    total = merge_reports(reports)
    if total.batches_failed or any(report.failed for report in reports):
        return EXIT_ERRORS
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings)
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
