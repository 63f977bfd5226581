"""Candidate record validation and standard field injection."""

import hashlib
import logging
from datetime import datetime
from typing import Any

from lognorm.exceptions import TypeMismatch, ValidationError
from lognorm.logtypes.registry import LogType
from lognorm.parsers.base import CandidateRecord, RawRecord
from lognorm.pipeline.events import NormalizedEvent

logger = logging.getLogger(__name__)


def row_id(source_id: str, offset: int, index: int = 0) -> str:
    """Deterministic row identifier for the index-th event of a raw record.

    The same (source, offset, index) always produces the same id, so
    re-processing an input produces the same rows.
    """
    key = f"{source_id}|{offset}|{index}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]


class Normalizer:
    """Turns candidate records into normalized events.

    Stateless; one instance can serve any number of log types.
    """

    def normalize(
        self,
        candidate: CandidateRecord,
        log_type: LogType,
        raw: RawRecord,
        index: int = 0,
    ) -> NormalizedEvent:
        """Validate a candidate record and attach standard fields.

        Args:
            candidate: Record produced by the log type's parser adapter
            log_type: Log type the record was parsed as
            raw: Raw record the candidate came from
            index: Position of the candidate within the raw record

        Returns:
            NormalizedEvent

        Raises:
            ValidationError: if a required field is missing or invalid
        """
        schema = log_type.schema
        degraded: list[str] = []
        try:
            data = schema.match(candidate, degraded)
        except TypeMismatch as e:
            raise ValidationError(log_type.name, e) from e

        if degraded:
            logger.debug(
                "%s %s@%d: optional fields set to null: %s",
                log_type.name,
                raw.source_id,
                raw.offset,
                ", ".join(degraded),
            )

        return NormalizedEvent(
            log_type=log_type.name,
            event_time=self._event_time(data, schema.event_time_path) or raw.ingest_time,
            row_id=row_id(raw.source_id, raw.offset, index),
            source_id=raw.source_id,
            source_offset=raw.offset,
            ingest_time=raw.ingest_time,
            data=data,
            indicators=schema.collect_indicators(data),
        )

    def _event_time(self, data: dict[str, Any], path: tuple[str, ...] | None) -> datetime | None:
        if path is None:
            return None
        value: Any = data
        for key in path:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value if isinstance(value, datetime) else None
