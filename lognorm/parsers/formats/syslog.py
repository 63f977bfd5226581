"""BSD syslog (RFC 3164) messages.

Format: "<PRI>Mmm dd hh:mm:ss hostname tag[pid]: message", PRI optional.
RFC 3164 timestamps carry no year; the year is taken from the record's
ingestion time, rolling back one year for timestamps that would otherwise
lie in the future (messages from late December ingested in January).
"""

import re
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

from lognorm.exceptions import ParseError
from lognorm.logtypes.registry import LogTypeConfig
from lognorm.logtypes.schema import Schema, integer, string, timestamp
from lognorm.parsers.base import CandidateRecord, ParserAdapter, RawRecord, adapter_factory

TYPE_SYSLOG_RFC3164 = "Syslog.RFC3164"

SYSLOG_PATTERN = re.compile(
    r"^(?:<(?P<priority>\d{1,3})>)?"
    r"(?P<month>[A-Z][a-z]{2})\s+"
    r"(?P<day>\d{1,2})\s+"
    r"(?P<time>\d{2}:\d{2}:\d{2})\s+"
    r"(?P<hostname>\S+)\s+"
    r"(?P<appname>[^\s\[:]+)"
    r"(?:\[(?P<procid>[^\]]+)\])?:\s?"
    r"(?P<message>.*)$"
)

MONTH_MAP = {
    "Jan": 1, "Feb": 2, "Mar": 3, "Apr": 4,
    "May": 5, "Jun": 6, "Jul": 7, "Aug": 8,
    "Sep": 9, "Oct": 10, "Nov": 11, "Dec": 12,
}

# Clock skew tolerated before a timestamp is considered to be from last year
_FUTURE_TOLERANCE = timedelta(days=1)


class SyslogRFC3164Adapter(ParserAdapter):
    """Parser adapter for RFC 3164 syslog lines."""

    def parse(self, raw: RawRecord) -> Iterator[CandidateRecord]:
        text = raw.text
        if not text.strip():
            return
        m = SYSLOG_PATTERN.match(text)
        if not m:
            raise ParseError("line is not an RFC 3164 syslog message")

        record: CandidateRecord = {
            "timestamp": self._resolve_timestamp(m, raw.ingest_time),
            "hostname": m.group("hostname"),
            "appname": m.group("appname"),
            "procid": m.group("procid"),
            "message": m.group("message"),
        }
        if m.group("priority") is not None:
            priority = int(m.group("priority"))
            if priority > 191:
                raise ParseError(f"invalid syslog priority {priority}")
            record["priority"] = priority
            record["facility"] = priority // 8
            record["severity"] = priority % 8
        yield record

    def _resolve_timestamp(self, m: re.Match, reference: datetime) -> datetime:
        month = MONTH_MAP.get(m.group("month"))
        if month is None:
            raise ParseError(f"invalid month {m.group('month')!r}")
        hour, minute, second = map(int, m.group("time").split(":"))
        reference = reference.astimezone(UTC)
        try:
            ts = datetime(reference.year, month, int(m.group("day")), hour, minute, second, tzinfo=UTC)
            if ts > reference + _FUTURE_TOLERANCE:
                ts = ts.replace(year=reference.year - 1)
        except ValueError as e:
            raise ParseError(f"invalid syslog timestamp: {e}") from e
        return ts


SYSLOG_RFC3164_SCHEMA = Schema(
    name="SyslogRFC3164",
    description="BSD syslog message",
    fields=(
        integer("priority", "Priority value, facility * 8 + severity"),
        integer("facility", "Syslog facility"),
        integer("severity", "Syslog severity"),
        timestamp("timestamp", "Message timestamp", required=True, event_time=True),
        string("hostname", "Host that sent the message", required=True),
        string("appname", "Tag identifying the sending program", required=True),
        string("procid", "Process identifier"),
        string("message", "Free-form message", required=True),
    ),
)

LOG_TYPES = [
    LogTypeConfig(
        name=TYPE_SYSLOG_RFC3164,
        description="Syslog messages in BSD (RFC 3164) format",
        reference_url="https://tools.ietf.org/html/rfc3164",
        schema=SYSLOG_RFC3164_SCHEMA,
        parser_factory=adapter_factory(SyslogRFC3164Adapter),
    ),
]
