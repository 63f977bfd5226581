"""Normalized event model and the standard fields added to every event."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from lognorm.logtypes.schema import INDICATOR_FIELDS, to_json_value
from lognorm.logtypes.timefmt import format_timestamp

# Standard columns appended to every table: (name, hive type, comment)
STANDARD_COLUMNS: list[tuple[str, str, str]] = [
    ("p_log_type", "string", "Log type name"),
    ("p_row_id", "string", "Deterministic row identifier"),
    ("p_event_time", "timestamp", "Canonical event time"),
    ("p_ingest_time", "timestamp", "Time the raw record was read"),
    ("p_source_id", "string", "Source the raw record was read from"),
    ("p_source_offset", "bigint", "Offset of the raw record within its source"),
] + [
    (column, "array<string>", f"All {kind} values found in the event")
    for kind, column in INDICATOR_FIELDS.items()
]


@dataclass(frozen=True)
class NormalizedEvent:
    """A validated, typed event ready for batching."""

    log_type: str
    event_time: datetime
    row_id: str
    source_id: str
    source_offset: int
    ingest_time: datetime
    data: dict[str, Any] = field(hash=False)
    indicators: dict[str, list[str]] = field(default_factory=dict, hash=False)

    def to_dict(self) -> dict[str, Any]:
        """Render the event as one output row."""
        row = to_json_value(self.data)
        row.update(
            {
                "p_log_type": self.log_type,
                "p_row_id": self.row_id,
                "p_event_time": format_timestamp(self.event_time),
                "p_ingest_time": format_timestamp(self.ingest_time),
                "p_source_id": self.source_id,
                "p_source_offset": self.source_offset,
            }
        )
        for column, values in self.indicators.items():
            if values:
                row[column] = list(values)
        return row
