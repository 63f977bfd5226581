"""Suricata IDS/IPS EVE JSON logs.

EVE writes every event type to the same file; each log type here covers one
event_type. Sources are expected to be split by event type upstream (for
example one eve-alert.json and one eve-dns.json output per sensor).
"""

from lognorm.logtypes.registry import LogTypeConfig
from lognorm.logtypes.schema import Field, Schema, integer, obj, string, timestamp
from lognorm.parsers.adapters import JSONAdapter
from lognorm.parsers.base import adapter_factory

TYPE_SURICATA_ALERT = "Suricata.Alert"
TYPE_SURICATA_DNS = "Suricata.DNS"

REFERENCE_URL = "https://docs.suricata.io/en/latest/output/eve/eve-json-format.html"


def _common_fields() -> tuple[Field, ...]:
    return (
        timestamp("timestamp", "Time the event was logged", required=True, event_time=True),
        integer("flow_id", "Flow identifier shared by all events of one flow"),
        string("in_iface", "Capture interface"),
        string("event_type", "EVE event type", required=True),
        string("src_ip", "Source IP address", indicators=("ip",)),
        integer("src_port", "Source port"),
        string("dest_ip", "Destination IP address", indicators=("ip",)),
        integer("dest_port", "Destination port"),
        string("proto", "Transport protocol"),
        string("community_id", "Community ID flow hash"),
    )


SURICATA_ALERT_SCHEMA = Schema(
    name="SuricataAlert",
    description="Suricata alert event",
    fields=_common_fields()
    + (
        string("app_proto", "Application layer protocol"),
        obj(
            "alert",
            string("action", "allowed or blocked"),
            integer("gid", "Generator ID"),
            integer("signature_id", "Signature ID"),
            integer("rev", "Signature revision"),
            string("signature", "Signature message"),
            string("category", "Signature classification"),
            integer("severity", "Signature severity, 1 is highest"),
            description="Alert details",
            required=True,
        ),
    ),
)

SURICATA_DNS_SCHEMA = Schema(
    name="SuricataDNS",
    description="Suricata DNS query or answer event",
    fields=_common_fields()
    + (
        obj(
            "dns",
            string("type", "query or answer", required=True),
            integer("id", "DNS transaction identifier"),
            string("rrname", "Resource record name", indicators=("domain",)),
            string("rrtype", "Resource record type"),
            string("rcode", "Response code"),
            string("rdata", "Resource record data"),
            integer("ttl", "Resource record TTL"),
            integer("tx_id", "Transaction ID within the flow"),
            description="DNS details",
            required=True,
        ),
    ),
)

LOG_TYPES = [
    LogTypeConfig(
        name=TYPE_SURICATA_ALERT,
        description="Suricata EVE alert events",
        reference_url=REFERENCE_URL,
        schema=SURICATA_ALERT_SCHEMA,
        parser_factory=adapter_factory(JSONAdapter),
    ),
    LogTypeConfig(
        name=TYPE_SURICATA_DNS,
        description="Suricata EVE DNS events",
        reference_url=REFERENCE_URL,
        schema=SURICATA_DNS_SCHEMA,
        parser_factory=adapter_factory(JSONAdapter),
    ),
]
