"""Log type API endpoints.

Read-only access to the registry: listing, catalog descriptions and sample
parsing of raw lines without writing anything to a sink.
"""

import logging
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from lognorm.api.deps import get_registry
from lognorm.config import get_settings
from lognorm.exceptions import RecordError
from lognorm.logtypes.catalog import describe_log_type
from lognorm.logtypes.registry import Registry
from lognorm.parsers.base import RawRecord
from lognorm.pipeline.classifier import Dispatcher, StaticClassifier
from lognorm.pipeline.normalizer import Normalizer

logger = logging.getLogger(__name__)
router = APIRouter()


class LogTypeInfo(BaseModel):
    """Log type summary."""

    name: str
    description: str
    reference_url: str
    table: str


class LogTypeListResponse(BaseModel):
    """List of registered log types."""

    log_types: list[LogTypeInfo]
    total: int


class ParseRequest(BaseModel):
    """Sample lines to parse as one log type."""

    lines: list[str] = Field(..., min_length=1, max_length=1000, description="Raw lines, one record each")
    source_id: str = Field("api", description="Source id recorded on the events")


class ParseErrorInfo(BaseModel):
    offset: int
    kind: str
    message: str


class ParseResponse(BaseModel):
    """Normalized events and per-line errors."""

    log_type: str
    events: list[dict[str, Any]]
    errors: list[ParseErrorInfo]


RegistryDep = Annotated[Registry, Depends(get_registry)]


@router.get("", response_model=LogTypeListResponse)
async def list_log_types(registry: RegistryDep) -> LogTypeListResponse:
    """List registered log types in registration order."""
    items = []
    for log_type in registry.all():
        description = describe_log_type(log_type)
        items.append(
            LogTypeInfo(
                name=log_type.name,
                description=log_type.description,
                reference_url=log_type.reference_url,
                table=description["table"],
            )
        )
    return LogTypeListResponse(log_types=items, total=len(items))


@router.get("/{name}")
async def get_log_type(name: str, registry: RegistryDep) -> dict[str, Any]:
    """Catalog description of one log type."""
    settings = get_settings()
    return describe_log_type(registry.lookup(name), settings.partition_granularity)


@router.get("/{name}/schema")
async def get_log_type_schema(name: str, registry: RegistryDep) -> dict[str, Any]:
    """Schema of one log type."""
    return registry.lookup(name).schema.describe()


@router.post("/{name}/parse", response_model=ParseResponse)
async def parse_sample(name: str, request: ParseRequest, registry: RegistryDep) -> ParseResponse:
    """Parse and normalize sample lines as the named log type."""
    log_type = registry.lookup(name)
    dispatcher = Dispatcher(registry, StaticClassifier(registry, log_type=log_type.name))
    normalizer = Normalizer()
    ingest_time = datetime.now(UTC)

    events: list[dict[str, Any]] = []
    errors: list[ParseErrorInfo] = []
    for offset, line in enumerate(request.lines):
        raw = RawRecord.from_text(line, request.source_id, offset, ingest_time)
        try:
            candidates = dispatcher.dispatch(log_type.name, raw)
        except RecordError as e:
            errors.append(ParseErrorInfo(offset=offset, kind=e.kind, message=e.message))
            continue
        for index, candidate in enumerate(candidates):
            try:
                events.append(normalizer.normalize(candidate, log_type, raw, index).to_dict())
            except RecordError as e:
                errors.append(ParseErrorInfo(offset=offset, kind=e.kind, message=e.message))

    logger.debug("Sample parse as %s: %d events, %d errors", log_type.name, len(events), len(errors))
    return ParseResponse(log_type=log_type.name, events=events, errors=errors)
