"""Raw record sources.

A source is one ordered stream of raw records. Its source id is both the
provenance recorded on every event and the hint used for classification.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from datetime import UTC, datetime

from lognorm.parsers.base import RawRecord


def split_lines(data: bytes) -> list[bytes]:
    """Split a payload into lines, keeping a final unterminated line."""
    lines = data.split(b"\n")
    if lines and lines[-1] == b"":
        lines.pop()
    return lines


class RawSource(ABC):
    """Abstract base class for raw record sources.

    Records are yielded in read order. Offsets are line numbers within the
    source, starting at zero.
    """

    def __init__(self, source_id: str, ingest_time: datetime | None = None):
        self.source_id = source_id
        self._ingest_time = ingest_time

    @abstractmethod
    def read_lines(self) -> AsyncIterator[bytes]:
        """Yield the raw lines of the source in order."""
        ...

    async def records(self) -> AsyncIterator[RawRecord]:
        ingest_time = self._ingest_time or datetime.now(UTC)
        offset = 0
        async for line in self.read_lines():
            yield RawRecord(line, self.source_id, offset, ingest_time)
            offset += 1

    def __aiter__(self) -> AsyncIterator[RawRecord]:
        return self.records()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source_id!r})"


class MemorySource(RawSource):
    """Source over in-memory lines. Used by the API and in tests."""

    def __init__(
        self,
        source_id: str,
        lines: Iterable[str | bytes],
        ingest_time: datetime | None = None,
    ):
        super().__init__(source_id, ingest_time)
        self._lines = [line.encode("utf-8") if isinstance(line, str) else line for line in lines]

    async def read_lines(self) -> AsyncIterator[bytes]:
        for line in self._lines:
            yield line
