"""Source classification and parser dispatch.

A classifier resolves a source hint (the source id of a raw record) to a log
type name. The resolution policy is injected, so deployments can choose
between prefix rules and explicit per-source configuration. There is no
default log type: a hint no rule matches is an UnknownSourceError.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from lognorm.exceptions import (
    ClassifierConfigError,
    ErrorDetail,
    ParseError,
    RecordError,
    UnknownSourceError,
)
from lognorm.logtypes.registry import LogType, Registry
from lognorm.parsers.base import CandidateRecord, ParserAdapter, RawRecord


class Classifier(ABC):
    """Resolves a source hint to a log type name."""

    @abstractmethod
    def classify(self, source_hint: str) -> str:
        """Resolve a source hint.

        Raises:
            UnknownSourceError: if no rule matches
        """
        ...


def _check_log_types(registry: Registry, names: Iterable[str]) -> None:
    unknown = sorted({name for name in names if name not in registry})
    if unknown:
        raise ClassifierConfigError(
            f"Classification rules reference unknown log types: {', '.join(unknown)}",
            details=[ErrorDetail(field="log_type", message=name) for name in unknown],
        )


class PrefixClassifier(Classifier):
    """Longest matching prefix wins.

    Usage:
        PrefixClassifier(registry, {"s3://logs/zeek/dns": "Zeek.DNS"})
    """

    def __init__(self, registry: Registry, rules: Mapping[str, str]):
        _check_log_types(registry, rules.values())
        # Longest prefix first so the first match is the most specific one
        self._rules = sorted(rules.items(), key=lambda item: (-len(item[0]), item[0]))

    def classify(self, source_hint: str) -> str:
        for prefix, log_type in self._rules:
            if source_hint.startswith(prefix):
                return log_type
        raise UnknownSourceError(source_hint)


class StaticClassifier(Classifier):
    """Explicit source to log type mapping, or one fixed log type for all."""

    def __init__(
        self,
        registry: Registry,
        mapping: Mapping[str, str] | None = None,
        log_type: str | None = None,
    ):
        if mapping is None and log_type is None:
            raise ClassifierConfigError("StaticClassifier needs a mapping or a log type")
        self._mapping = dict(mapping or {})
        self._log_type = log_type
        _check_log_types(registry, list(self._mapping.values()) + ([log_type] if log_type else []))

    def classify(self, source_hint: str) -> str:
        if self._log_type is not None:
            return self._log_type
        try:
            return self._mapping[source_hint]
        except KeyError:
            raise UnknownSourceError(source_hint) from None


class Dispatcher:
    """Routes raw records to the parser adapter of their log type.

    One dispatcher belongs to one worker; it creates each log type's adapter
    on first use and reuses it for later records.
    """

    def __init__(self, registry: Registry, classifier: Classifier):
        self.registry = registry
        self.classifier = classifier
        self._adapters: dict[str, ParserAdapter] = {}

    def classify(self, raw: RawRecord) -> LogType:
        """Resolve the log type of a raw record from its source id.

        Raises:
            UnknownSourceError: if the source cannot be classified
        """
        name = self.classifier.classify(raw.source_id)
        log_type = self.registry.get(name)
        if log_type is None:
            raise UnknownSourceError(raw.source_id)
        return log_type

    def adapter(self, log_type: LogType) -> ParserAdapter:
        adapter = self._adapters.get(log_type.name)
        if adapter is None:
            adapter = log_type.new_parser()
            self._adapters[log_type.name] = adapter
        return adapter

    def dispatch(self, name: str, raw: RawRecord) -> list[CandidateRecord]:
        """Parse one raw record with the adapter of the named log type.

        The adapter output is fully materialized: a record either yields
        all of its candidates or raises.

        Raises:
            LogTypeNotFoundError: if the name is not registered
            ParseError: if the adapter cannot decode the record
        """
        log_type = self.registry.lookup(name)
        try:
            return list(self.adapter(log_type).parse(raw))
        except RecordError:
            raise
        except (ValueError, TypeError, KeyError, IndexError, UnicodeError, ArithmeticError) as e:
            raise ParseError(f"{log_type.name} adapter failed: {e}") from e
