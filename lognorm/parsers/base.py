"""Base parser adapter interface and raw record structure.

Every log format is decoded through the same contract: one raw record in,
zero or more candidate records out. Adapters carry only format-level
configuration fixed at construction, so a single instance can be used for
any number of records.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial
from typing import Any

from lognorm.exceptions import ParseError

# A candidate record before schema validation
CandidateRecord = dict[str, Any]


@dataclass(frozen=True)
class RawRecord:
    """One opaque unit read from a source stream, with provenance."""

    data: bytes
    source_id: str
    offset: int
    ingest_time: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_text(
        cls,
        text: str,
        source_id: str,
        offset: int,
        ingest_time: datetime | None = None,
    ) -> "RawRecord":
        if ingest_time is None:
            return cls(text.encode("utf-8"), source_id, offset)
        return cls(text.encode("utf-8"), source_id, offset, ingest_time)

    @property
    def text(self) -> str:
        """Record payload decoded as UTF-8, without the line terminator.

        Raises:
            ParseError: if the payload is not valid UTF-8
        """
        try:
            text = self.data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"invalid UTF-8 at byte {e.start}") from e
        return text.rstrip("\r\n")


class ParserAdapter(ABC):
    """Abstract base class for all parser adapters.

    Implementations must not keep state between calls to parse().
    """

    @abstractmethod
    def parse(self, raw: RawRecord) -> Iterator[CandidateRecord]:
        """Decode one raw record.

        Args:
            raw: The record to decode

        Yields:
            Candidate records (most formats yield exactly one)

        Raises:
            ParseError: if the record cannot be decoded
        """
        ...


def adapter_factory(adapter_class: type[ParserAdapter], **options: Any) -> Callable[[], ParserAdapter]:
    """Factory producing a configured adapter instance per call.

    Usage:
        parser_factory=adapter_factory(CSVAdapter, header=VPC_FLOW_FIELDS, delimiter=" ")
    """
    return partial(adapter_class, **options)
