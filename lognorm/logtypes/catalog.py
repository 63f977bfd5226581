"""Serializable table descriptions for the external catalog service.

The pipeline never creates tables itself. It emits, per log type, the column
layout that a catalog (Hive metastore, Glue, ...) needs to provision a
queryable table over the objects the sinks write.
"""

import re
from typing import Any

from lognorm.logtypes.registry import LogType, Registry
from lognorm.pipeline.events import STANDARD_COLUMNS

_TABLE_PATTERN = re.compile(r"[^a-z0-9]+")

PARTITION_COLUMNS = {
    "hour": ["year", "month", "day", "hour"],
    "day": ["year", "month", "day"],
}


def table_name(log_type_name: str) -> str:
    """Table name for a log type (Zeek.DNS -> zeek_dns)."""
    return _TABLE_PATTERN.sub("_", log_type_name.lower()).strip("_")


def describe_log_type(log_type: LogType, granularity: str = "hour") -> dict[str, Any]:
    """Describe the table backing one log type.

    Args:
        log_type: Registered log type
        granularity: Partition granularity the batcher uses

    Returns:
        Dict with table name, columns (schema then standard fields) and
        partition keys
    """
    columns = [
        {
            "name": f.column,
            "type": f.hive_type(),
            "comment": f.description,
        }
        for f in log_type.schema.fields
    ]
    columns.extend(
        {"name": name, "type": hive_type, "comment": comment}
        for name, hive_type, comment in STANDARD_COLUMNS
    )

    return {
        "log_type": log_type.name,
        "table": table_name(log_type.name),
        "description": log_type.description,
        "reference_url": log_type.reference_url,
        "columns": columns,
        "partition_keys": [
            {"name": key, "type": "int"} for key in PARTITION_COLUMNS[granularity]
        ],
        "schema": log_type.schema.describe(),
    }


def describe_registry(registry: Registry, granularity: str = "hour") -> list[dict[str, Any]]:
    """Describe every registered log type, in registration order."""
    return [describe_log_type(log_type, granularity) for log_type in registry.all()]
