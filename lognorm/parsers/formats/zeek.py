"""Zeek (formerly Bro) network security monitor logs.

Zeek writes one JSON object per line when LogAscii::use_json is enabled.
The ts field is an epoch float by default, or ISO-8601 when
LogAscii::json_timestamps is set to JSON::TS_ISO8601; both are accepted.
"""

from lognorm.logtypes.registry import LogTypeConfig
from lognorm.logtypes.schema import (
    Schema,
    array,
    boolean,
    float_,
    integer,
    string,
    timestamp,
)
from lognorm.parsers.adapters import JSONAdapter
from lognorm.parsers.base import adapter_factory

TYPE_ZEEK_DNS = "Zeek.DNS"

ZEEK_DNS_SCHEMA = Schema(
    name="ZeekDNS",
    description="Zeek DNS activity",
    fields=(
        timestamp("ts", "Timestamp when the DNS query was detected", required=True, event_time=True),
        string("uid", "Unique ID of the connection", required=True),
        string("id.orig_h", "Originator IP address", required=True, indicators=("ip",)),
        integer("id.orig_p", "Originator port", required=True),
        string("id.resp_h", "Responder IP address", required=True, indicators=("ip",)),
        integer("id.resp_p", "Responder port", required=True),
        string("proto", "Transport layer protocol of the connection", required=True),
        integer("trans_id", "16 bit identifier assigned by the program that generated the query"),
        float_("rtt", "Round trip time for the query and response"),
        string("query", "The domain name that is the subject of the DNS query", indicators=("domain",)),
        integer("qclass", "The QCLASS value specifying the class of the query"),
        string("qclass_name", "A descriptive name for the class of the query"),
        integer("qtype", "A QTYPE value specifying the type of the query"),
        string("qtype_name", "A descriptive name for the type of the query"),
        integer("rcode", "The response code value in DNS response messages"),
        string("rcode_name", "A descriptive name for the response code value"),
        boolean("AA", "Authoritative Answer bit"),
        boolean("TC", "Truncation bit"),
        boolean("RD", "Recursion Desired bit"),
        boolean("RA", "Recursion Available bit"),
        integer("Z", "Reserved field, usually zero"),
        array("answers", string("answer"), "The set of resource descriptions in the query answer"),
        array("TTLs", float_("ttl"), "The caching intervals of the associated RRs"),
        boolean("rejected", "Whether the DNS query was rejected by the server"),
    ),
)

LOG_TYPES = [
    LogTypeConfig(
        name=TYPE_ZEEK_DNS,
        description="Zeek DNS activity",
        reference_url="https://docs.zeek.org/en/current/scripts/base/protocols/dns/main.zeek.html#type-DNS::Info",
        schema=ZEEK_DNS_SCHEMA,
        parser_factory=adapter_factory(JSONAdapter),
    ),
]
