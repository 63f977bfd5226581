"""Okta System Log events."""

from lognorm.logtypes.registry import LogTypeConfig
from lognorm.logtypes.schema import Schema, obj, string, timestamp
from lognorm.parsers.adapters import JSONAdapter
from lognorm.parsers.base import adapter_factory

TYPE_OKTA_SYSTEM_LOG = "Okta.SystemLog"

OKTA_SYSTEM_LOG_SCHEMA = Schema(
    name="OktaSystemLog",
    description="Okta System Log event",
    fields=(
        string("uuid", "Unique identifier for the event", required=True),
        timestamp("published", "Time the event was published", required=True, event_time=True),
        string("eventType", "Type of event", required=True),
        string("version", "Versioning indicator"),
        string("severity", "DEBUG, INFO, WARN or ERROR"),
        string("legacyEventType", "Associated legacy event type"),
        string("displayMessage", "Human readable description of the event"),
        obj(
            "actor",
            string("id", "ID of the actor"),
            string("type", "Type of the actor"),
            string("alternateId", "Alternative ID of the actor", indicators=("username",)),
            string("displayName", "Display name of the actor"),
            description="Entity that performed the action",
        ),
        obj(
            "client",
            obj(
                "userAgent",
                string("rawUserAgent", "Raw user agent string"),
                string("os", "Operating system"),
                string("browser", "Browser"),
                description="User agent of the client",
            ),
            string("zone", "Network zone"),
            string("device", "Type of device"),
            string("id", "Client identifier"),
            string("ipAddress", "IP address of the client", indicators=("ip",)),
            description="Client that requested the action",
        ),
        obj(
            "outcome",
            string("result", "SUCCESS, FAILURE, SKIPPED, ALLOW, DENY, CHALLENGE or UNKNOWN"),
            string("reason", "Reason for the result"),
            description="Outcome of the action",
        ),
        obj(
            "transaction",
            string("type", "Kind of transaction"),
            string("id", "Unique identifier for the transaction"),
            description="Transaction details",
        ),
    ),
)

LOG_TYPES = [
    LogTypeConfig(
        name=TYPE_OKTA_SYSTEM_LOG,
        description="Okta System Log records events related to an organization",
        reference_url="https://developer.okta.com/docs/reference/api/system-log/",
        schema=OKTA_SYSTEM_LOG_SCHEMA,
        parser_factory=adapter_factory(JSONAdapter),
    ),
]
