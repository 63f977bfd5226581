"""Log type declarations: schemas, descriptors and the registry."""

from lognorm.logtypes.registry import (
    LogType,
    LogTypeConfig,
    Registry,
    bootstrap_registry,
    build_registry,
)
from lognorm.logtypes.schema import Field, FieldKind, Schema

__all__ = [
    "Field",
    "FieldKind",
    "LogType",
    "LogTypeConfig",
    "Registry",
    "Schema",
    "bootstrap_registry",
    "build_registry",
]
