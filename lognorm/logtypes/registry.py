"""Log type descriptors and the registry that holds them.

The registry is built exactly once, at process start, from a static list of
declarations. Construction is all or nothing: the first duplicate name,
invalid schema or missing parser factory aborts the whole build, so a
process never runs with a partially valid set of log types. Once built the
registry is never mutated and can be shared by any number of workers.
"""

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from lognorm.exceptions import (
    DuplicateNameError,
    InvalidSchemaError,
    LogTypeNotFoundError,
    MissingParserError,
    SchemaError,
)
from lognorm.logtypes.schema import Schema

if TYPE_CHECKING:
    from lognorm.parsers.base import ParserAdapter

logger = logging.getLogger(__name__)

ParserFactory = Callable[[], "ParserAdapter"]


@dataclass(frozen=True)
class LogTypeConfig:
    """Static declaration of one supported log format."""

    name: str
    description: str
    reference_url: str
    schema: Schema
    parser_factory: ParserFactory | None


@dataclass(frozen=True)
class LogType:
    """A registered log type. Only the registry creates these."""

    name: str
    description: str
    reference_url: str
    schema: Schema
    parser_factory: ParserFactory

    def new_parser(self) -> "ParserAdapter":
        """Create a parser adapter for this log type."""
        return self.parser_factory()


class Registry:
    """Immutable, name-keyed collection of log types.

    Iteration and all() follow registration order, which keeps generated
    catalog definitions deterministic across runs.
    """

    __slots__ = ("_by_name", "_ordered")

    def __init__(self, log_types: Iterable[LogType] = ()):
        by_name: dict[str, LogType] = {}
        for log_type in log_types:
            if log_type.name in by_name:
                raise DuplicateNameError(log_type.name)
            by_name[log_type.name] = log_type
        self._by_name = MappingProxyType(by_name)
        self._ordered = tuple(by_name.values())

    def lookup(self, name: str) -> LogType:
        """Get a log type by name.

        Raises:
            LogTypeNotFoundError: if no log type has that name
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise LogTypeNotFoundError(name) from None

    def get(self, name: str) -> LogType | None:
        return self._by_name.get(name)

    def all(self) -> tuple[LogType, ...]:
        return self._ordered

    def names(self) -> list[str]:
        return [log_type.name for log_type in self._ordered]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[LogType]:
        return iter(self._ordered)

    def __len__(self) -> int:
        return len(self._ordered)

    def __repr__(self) -> str:
        return f"Registry({self.names()!r})"


class RegistryBuilder:
    """Single construction pass for a registry."""

    def __init__(self) -> None:
        self._log_types: list[LogType] = []
        self._names: set[str] = set()

    def register(self, config: LogTypeConfig) -> LogType:
        """Validate and add one declaration.

        Raises:
            DuplicateNameError: if the name is already registered
            InvalidSchemaError: if the schema fails validation
            MissingParserError: if no parser factory is declared
        """
        if config.name in self._names:
            raise DuplicateNameError(config.name)
        if not isinstance(config.schema, Schema):
            raise InvalidSchemaError(config.name, SchemaError("", "schema is missing"))
        try:
            config.schema.validate()
        except SchemaError as e:
            raise InvalidSchemaError(config.name, e) from e
        if config.parser_factory is None or not callable(config.parser_factory):
            raise MissingParserError(config.name)

        log_type = LogType(
            name=config.name,
            description=config.description,
            reference_url=config.reference_url,
            schema=config.schema,
            parser_factory=config.parser_factory,
        )
        self._names.add(config.name)
        self._log_types.append(log_type)
        return log_type

    def build(self) -> Registry:
        return Registry(self._log_types)


def build_registry(*groups: Iterable[LogTypeConfig]) -> Registry:
    """Build a registry from one or more groups of declarations.

    Declarations are registered in the order given. The first failure
    aborts construction and no registry is returned.

    Raises:
        RegistryError: on duplicate names, invalid schemas or missing parsers
    """
    builder = RegistryBuilder()
    for group in groups:
        for config in group:
            builder.register(config)
    return builder.build()


def bootstrap_registry() -> Registry:
    """Build the registry of built-in log types.

    Called once during process initialization. Failures propagate so the
    caller can refuse to start.
    """
    from lognorm.parsers.formats import builtin_log_types

    registry = build_registry(builtin_log_types())
    logger.info("Registered %d log types: %s", len(registry), ", ".join(registry.names()))
    return registry
