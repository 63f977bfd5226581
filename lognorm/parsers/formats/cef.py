"""CEF (Common Event Format) events.

CEF format: CEF:Version|Device Vendor|Device Product|Device Version|Signature ID|Name|Severity|Extension

A syslog header in front of "CEF:" is tolerated and discarded.
"""

import re
from collections.abc import Iterator
from datetime import UTC, datetime

from lognorm.exceptions import ParseError
from lognorm.logtypes.registry import LogTypeConfig
from lognorm.logtypes.schema import Schema, integer, string, timestamp
from lognorm.parsers.base import CandidateRecord, ParserAdapter, RawRecord, adapter_factory

TYPE_CEF = "CEF.Event"

# Header fields may contain escaped pipes
_HEADER_FIELD = r"((?:[^|\\]|\\.)*)"
CEF_HEADER_PATTERN = re.compile(
    r"CEF:(\d+)\|" + r"\|".join([_HEADER_FIELD] * 6) + r"\|(.*)$"
)

# Start of an extension key; values run until the next key
CEF_EXTENSION_KEY = re.compile(r"(?:^|(?<=\s))(\w+)=")

# Layouts seen in the rt/start/end extension fields
CEF_TIME_FORMATS = [
    "%b %d %Y %H:%M:%S",
    "%b %d %Y %H:%M:%S.%f",
    "%b %d %H:%M:%S %Y",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
]

HEADER_KEYS = (
    "device_vendor",
    "device_product",
    "device_version",
    "signature_id",
    "name",
    "severity",
)


class CEFAdapter(ParserAdapter):
    """Parser adapter for single-line CEF events."""

    def parse(self, raw: RawRecord) -> Iterator[CandidateRecord]:
        text = raw.text
        if not text.strip():
            return
        m = CEF_HEADER_PATTERN.search(text)
        if not m:
            raise ParseError("line is not a CEF event")

        record: CandidateRecord = {"version": m.group(1)}
        for key, value in zip(HEADER_KEYS, m.groups()[1:7]):
            record[key] = unescape_header(value)

        for key, value in parse_extension(m.group(8)).items():
            if key in ("rt", "start", "end"):
                record[key] = parse_cef_time(value)
            elif key not in record:
                record[key] = value
        yield record


def unescape_header(value: str) -> str:
    return value.replace("\\|", "|").replace("\\\\", "\\")


def parse_extension(extension: str) -> dict[str, str]:
    """Split a CEF extension into key/value pairs.

    Values may contain unescaped spaces, so each value extends up to the
    start of the next key.
    """
    fields: dict[str, str] = {}
    matches = list(CEF_EXTENSION_KEY.finditer(extension))
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(extension)
        fields[match.group(1)] = _unescape_value(extension[match.end():end].strip())
    return fields


def _unescape_value(value: str) -> str:
    return (
        value.replace("\\=", "=")
        .replace("\\n", "\n")
        .replace("\\r", "\r")
        .replace("\\\\", "\\")
    )


def parse_cef_time(value: str) -> datetime | str:
    """Parse a CEF time value, returning the input unchanged if unknown.

    Epoch values are milliseconds. An epoch out of range is returned
    unchanged and left to schema validation.
    """
    if value.isdigit():
        try:
            return datetime.fromtimestamp(int(value) / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return value
    for fmt in CEF_TIME_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=UTC)
        except ValueError:
            continue
    return value


CEF_SCHEMA = Schema(
    name="CEFEvent",
    description="ArcSight Common Event Format event",
    fields=(
        integer("version", "CEF format version", required=True),
        string("device_vendor", "Vendor of the sending device", required=True),
        string("device_product", "Product of the sending device", required=True),
        string("device_version", "Version of the sending device"),
        string("signature_id", "Unique identifier per event type"),
        string("name", "Human readable description of the event"),
        string("severity", "Importance of the event, 0-10 or Low to Very-High"),
        timestamp("rt", "Time the event was received", event_time=True),
        timestamp("start", "Start of the activity"),
        timestamp("end", "End of the activity"),
        string("src", "Source IP address", indicators=("ip",)),
        string("dst", "Destination IP address", indicators=("ip",)),
        integer("spt", "Source port"),
        integer("dpt", "Destination port"),
        string("suser", "Source user name", indicators=("username",)),
        string("duser", "Destination user name", indicators=("username",)),
        string("shost", "Source host name", indicators=("domain",)),
        string("dhost", "Destination host name", indicators=("domain",)),
        string("act", "Action taken"),
        string("app", "Application protocol"),
        string("proto", "Transport protocol"),
        string("msg", "Additional message"),
        string("request", "Requested URL"),
        string("outcome", "Outcome of the event"),
        string("cat", "Device event category"),
    ),
)

LOG_TYPES = [
    LogTypeConfig(
        name=TYPE_CEF,
        description="ArcSight Common Event Format events from SIEMs and security devices",
        reference_url="https://www.microfocus.com/documentation/arcsight/arcsight-smartconnectors/pdfdoc/common-event-format-v25/common-event-format-v25.pdf",
        schema=CEF_SCHEMA,
        parser_factory=adapter_factory(CEFAdapter),
    ),
]
