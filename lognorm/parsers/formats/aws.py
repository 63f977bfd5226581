"""AWS CloudTrail and VPC Flow logs."""

from lognorm.logtypes.registry import LogTypeConfig
from lognorm.logtypes.schema import Schema, boolean, integer, obj, string, timestamp
from lognorm.parsers.adapters import CSVAdapter, JSONAdapter
from lognorm.parsers.base import adapter_factory

TYPE_CLOUDTRAIL = "AWS.CloudTrail"
TYPE_VPC_FLOW = "AWS.VPCFlow"

CLOUDTRAIL_SCHEMA = Schema(
    name="AWSCloudTrail",
    description="AWS CloudTrail API activity record",
    fields=(
        string("eventVersion", "Version of the log event format"),
        obj(
            "userIdentity",
            string("type", "Type of the identity"),
            string("principalId", "Unique identifier of the entity that made the call"),
            string("arn", "ARN of the principal"),
            string("accountId", "Account that owns the entity"),
            string("accessKeyId", "Access key ID used to sign the request"),
            string("userName", "Friendly name of the identity", indicators=("username",)),
            string("invokedBy", "AWS service that made the request"),
            description="Identity that made the request",
        ),
        timestamp("eventTime", "Time the request was completed", required=True, event_time=True),
        string("eventSource", "Service the request was made to", required=True),
        string("eventName", "Requested action", required=True),
        string("awsRegion", "Region the request was made to", required=True),
        string("sourceIPAddress", "IP address the request was made from", indicators=("ip",)),
        string("userAgent", "Agent through which the request was made"),
        string("errorCode", "AWS service error, if any"),
        string("errorMessage", "Error description, if any"),
        string("requestID", "Service-generated request identifier"),
        string("eventID", "CloudTrail-generated event identifier", required=True),
        string("eventType", "Type of event that generated the record"),
        boolean("readOnly", "Whether the operation is read-only"),
        string("recipientAccountId", "Account that received the event"),
        boolean("managementEvent", "Whether the event is a management event"),
    ),
)

# Default (version 2) flow log format
VPC_FLOW_HEADER = (
    "version",
    "account-id",
    "interface-id",
    "srcaddr",
    "dstaddr",
    "srcport",
    "dstport",
    "protocol",
    "packets",
    "bytes",
    "start",
    "end",
    "action",
    "log-status",
)

VPC_FLOW_SCHEMA = Schema(
    name="AWSVPCFlow",
    description="AWS VPC Flow log record (default format)",
    fields=(
        integer("version", "Flow log version", required=True),
        string("account-id", "Account ID of the network interface owner"),
        string("interface-id", "Network interface ID"),
        string("srcaddr", "Source address", indicators=("ip",)),
        string("dstaddr", "Destination address", indicators=("ip",)),
        integer("srcport", "Source port"),
        integer("dstport", "Destination port"),
        integer("protocol", "IANA protocol number"),
        integer("packets", "Packets transferred during the flow"),
        integer("bytes", "Bytes transferred during the flow"),
        timestamp("start", "Start of the capture window", format="unix", required=True, event_time=True),
        timestamp("end", "End of the capture window", format="unix"),
        string("action", "ACCEPT or REJECT"),
        string("log-status", "OK, NODATA or SKIPDATA", required=True),
    ),
)

LOG_TYPES = [
    LogTypeConfig(
        name=TYPE_CLOUDTRAIL,
        description="AWS CloudTrail records API and account activity",
        reference_url="https://docs.aws.amazon.com/awscloudtrail/latest/userguide/cloudtrail-event-reference.html",
        schema=CLOUDTRAIL_SCHEMA,
        parser_factory=adapter_factory(JSONAdapter, records_key="Records"),
    ),
    LogTypeConfig(
        name=TYPE_VPC_FLOW,
        description="AWS VPC Flow logs capture IP traffic to and from network interfaces",
        reference_url="https://docs.aws.amazon.com/vpc/latest/userguide/flow-log-records.html",
        schema=VPC_FLOW_SCHEMA,
        parser_factory=adapter_factory(
            CSVAdapter, header=VPC_FLOW_HEADER, delimiter=" ", null_values=("-",)
        ),
    ),
]
