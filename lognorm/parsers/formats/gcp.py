"""GCP Cloud Audit Logs exported as JSON lines (Admin Activity, Data Access,
System Event and Policy Denied)."""

from lognorm.logtypes.registry import LogTypeConfig
from lognorm.logtypes.schema import Schema, integer, obj, string, timestamp
from lognorm.parsers.adapters import JSONAdapter
from lognorm.parsers.base import adapter_factory

TYPE_GCP_AUDIT = "GCP.AuditLog"

GCP_AUDIT_SCHEMA = Schema(
    name="GCPAuditLog",
    description="Google Cloud audit log entry",
    fields=(
        string("logName", "Resource name of the log", required=True),
        string("severity", "Severity of the log entry"),
        string("insertId", "Unique identifier for the log entry", required=True),
        timestamp("timestamp", "Time the event described by the entry occurred", required=True, event_time=True),
        timestamp("receiveTimestamp", "Time the entry was received by Cloud Logging"),
        obj(
            "resource",
            string("type", "Monitored resource type", required=True),
            description="Monitored resource that produced the entry",
        ),
        obj(
            "protoPayload",
            string("@type", "Payload type URL"),
            string("serviceName", "Name of the API service performing the operation"),
            string("methodName", "Name of the service method or operation"),
            string("resourceName", "Resource or collection that is the target of the operation"),
            obj(
                "authenticationInfo",
                string("principalEmail", "Email of the authenticated principal", indicators=("username",)),
                string("principalSubject", "Identity string of the principal"),
                description="Authentication information",
            ),
            obj(
                "requestMetadata",
                string("callerIp", "IP address of the caller", indicators=("ip",)),
                string("callerSuppliedUserAgent", "User agent of the caller"),
                description="Metadata about the operation",
            ),
            obj(
                "status",
                integer("code", "google.rpc.Code of the operation"),
                string("message", "Developer-facing error message"),
                description="Status of the overall operation",
            ),
            description="Audit log payload",
            required=True,
        ),
    ),
)

LOG_TYPES = [
    LogTypeConfig(
        name=TYPE_GCP_AUDIT,
        description="Google Cloud Platform audit logs",
        reference_url="https://cloud.google.com/logging/docs/audit",
        schema=GCP_AUDIT_SCHEMA,
        parser_factory=adapter_factory(JSONAdapter),
    ),
]
