"""Generic line-oriented parser adapters.

Most log types are served by one of these adapters configured through
adapter_factory(); formats with unusual framing get their own adapter in
lognorm.parsers.formats.
"""

import csv
import json
import logging
import re
from collections.abc import Iterator, Sequence

from lognorm.exceptions import ParseError
from lognorm.parsers.base import CandidateRecord, ParserAdapter, RawRecord

logger = logging.getLogger(__name__)


class JSONAdapter(ParserAdapter):
    """JSON object per line.

    When records_key is set, an object carrying that key is treated as an
    envelope and each element of the list under it is yielded as its own
    record (CloudTrail's {"Records": [...]} framing).
    """

    def __init__(self, records_key: str | None = None):
        self.records_key = records_key

    def parse(self, raw: RawRecord) -> Iterator[CandidateRecord]:
        text = raw.text.strip()
        if not text:
            return
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid JSON at column {e.colno}: {e.msg}") from e

        if not isinstance(value, dict):
            raise ParseError(f"expected JSON object, got {type(value).__name__}")

        if self.records_key is None or self.records_key not in value:
            yield value
            return

        records = value[self.records_key]
        if not isinstance(records, list):
            raise ParseError(f"'{self.records_key}' is not a list")
        for i, record in enumerate(records):
            if not isinstance(record, dict):
                raise ParseError(f"'{self.records_key}[{i}]' is not an object")
        yield from records


class CSVAdapter(ParserAdapter):
    """Delimited text with a fixed header.

    A line that repeats the header (as emitted at the top of each file by
    many producers) yields nothing. So does any line starting with
    header_prefix, e.g. "#" for the #separator, #fields and #types lines of
    Zeek TSV logs.
    """

    def __init__(
        self,
        header: Sequence[str],
        delimiter: str = ",",
        null_values: Sequence[str] = (),
        header_prefix: str | None = None,
    ):
        if not header:
            raise ValueError("CSVAdapter requires a header")
        if header_prefix == "":
            raise ValueError("header_prefix must not be empty")
        self.header = tuple(header)
        self.delimiter = delimiter
        self.null_values = frozenset(null_values)
        self.header_prefix = header_prefix

    def parse(self, raw: RawRecord) -> Iterator[CandidateRecord]:
        text = raw.text
        if not text.strip():
            return
        if self.header_prefix is not None and text.startswith(self.header_prefix):
            return
        try:
            row = next(csv.reader([text], delimiter=self.delimiter, skipinitialspace=True))
        except csv.Error as e:
            raise ParseError(f"invalid delimited line: {e}") from e

        if tuple(row) == self.header:
            return
        if len(row) != len(self.header):
            raise ParseError(f"expected {len(self.header)} columns, got {len(row)}")

        yield {
            key: (None if value in self.null_values else value)
            for key, value in zip(self.header, row)
        }


# key=value or key="quoted value"
_KV_PATTERN = re.compile(r'([A-Za-z_][\w.\-]*)=("(?:[^"\\]|\\.)*"|\S*)')


class KeyValueAdapter(ParserAdapter):
    """Space separated key=value pairs, values optionally double-quoted."""

    def __init__(self, null_values: Sequence[str] = ()):
        self.null_values = frozenset(null_values)

    def parse(self, raw: RawRecord) -> Iterator[CandidateRecord]:
        text = raw.text.strip()
        if not text:
            return
        record = parse_key_values(text)
        if not record:
            raise ParseError("no key=value pairs found")
        yield {k: (None if v in self.null_values else v) for k, v in record.items()}


def parse_key_values(text: str) -> dict[str, str]:
    record = {}
    for key, value in _KV_PATTERN.findall(text):
        if value.startswith('"') and value.endswith('"') and len(value) >= 2:
            value = re.sub(r"\\(.)", r"\1", value[1:-1])
        record[key] = value
    return record


class RegexAdapter(ParserAdapter):
    """Line matched against a regular expression with named groups."""

    def __init__(self, pattern: str | re.Pattern, null_values: Sequence[str] = ()):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern
        if not self.pattern.groupindex:
            raise ValueError("RegexAdapter pattern needs named groups")
        self.null_values = frozenset(null_values)

    def parse(self, raw: RawRecord) -> Iterator[CandidateRecord]:
        text = raw.text
        if not text.strip():
            return
        m = self.pattern.match(text)
        if not m:
            raise ParseError("line does not match expected format")
        yield {
            key: (None if value in self.null_values else value)
            for key, value in m.groupdict().items()
        }
