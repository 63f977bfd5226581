"""Apache/Nginx combined access log.

Format: IP - user [datetime] "method path proto" status size "referer" "ua"
"""

import re

from lognorm.logtypes.registry import LogTypeConfig
from lognorm.logtypes.schema import Schema, integer, string, timestamp
from lognorm.parsers.adapters import RegexAdapter
from lognorm.parsers.base import adapter_factory

TYPE_APACHE_ACCESS = "Apache.AccessCombined"

ACCESS_PATTERN = re.compile(
    r"^(?P<remote_host>\S+)\s+"
    r"(?P<identity>\S+)\s+"
    r"(?P<user>\S+)\s+"
    r"\[(?P<time>[^\]]+)\]\s+"
    r'"(?P<method>[A-Z]+)\s+(?P<path>\S+)\s*(?P<protocol>[^"]*)"\s+'
    r"(?P<status>\d{3})\s+"
    r"(?P<bytes>\S+)"
    r'(?:\s+"(?P<referer>[^"]*)"\s+"(?P<user_agent>[^"]*)")?'
)

APACHE_ACCESS_SCHEMA = Schema(
    name="ApacheAccessCombined",
    description="Apache HTTP server access log in combined format",
    fields=(
        string("remote_host", "Client address", required=True, indicators=("ip",)),
        string("identity", "RFC 1413 identity of the client"),
        string("user", "Authenticated user", indicators=("username",)),
        timestamp("time", "Time the request was received", format="%d/%b/%Y:%H:%M:%S %z", required=True, event_time=True),
        string("method", "HTTP method", required=True),
        string("path", "Requested path", required=True),
        string("protocol", "HTTP protocol version"),
        integer("status", "Response status code", required=True),
        integer("bytes", "Response size in bytes"),
        string("referer", "Referer header"),
        string("user_agent", "User-Agent header"),
    ),
)

LOG_TYPES = [
    LogTypeConfig(
        name=TYPE_APACHE_ACCESS,
        description="Apache HTTP server access logs in combined format",
        reference_url="https://httpd.apache.org/docs/current/logs.html#combined",
        schema=APACHE_ACCESS_SCHEMA,
        parser_factory=adapter_factory(RegexAdapter, pattern=ACCESS_PATTERN, null_values=("-",)),
    ),
]
