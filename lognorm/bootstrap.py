"""Process bootstrap shared by the runner and the Celery worker."""

import logging
from typing import Any

from lognorm.config import Settings
from lognorm.exceptions import ClassifierConfigError
from lognorm.logtypes.registry import Registry
from lognorm.pipeline.classifier import Classifier, PrefixClassifier, StaticClassifier
from lognorm.sources.base import RawSource
from lognorm.sources.local import LocalFileSource

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_classifier(registry: Registry, settings: Settings, log_type: str | None = None) -> Classifier:
    """Classifier for a process.

    An explicit log type pins every source to it; otherwise the configured
    prefix rules apply.

    Raises:
        ClassifierConfigError: if a rule names an unregistered log type, or
            there is neither a log type nor any rule
    """
    if log_type:
        return StaticClassifier(registry, log_type=log_type)
    if not settings.source_rules:
        raise ClassifierConfigError("No source rules configured and no log type given")
    return PrefixClassifier(registry, settings.source_rules)


def open_source(location: str, settings: Settings, s3_client: Any = None) -> RawSource:
    """Source for a local path or an s3:// URL."""
    if location.startswith("s3://"):
        from lognorm.sinks.s3 import create_s3_client
        from lognorm.sources.s3 import S3Source

        if s3_client is None:
            s3_client = create_s3_client(
                settings.sink_region,
                settings.sink_access_key,
                settings.sink_secret_key,
                settings.sink_endpoint_url,
            )
        return S3Source.from_url(s3_client, location)
    return LocalFileSource(location)
