"""Unit tests for the built-in log types, from raw line to normalized event."""

import json
from datetime import UTC, datetime

import pytest

from lognorm.exceptions import ParseError, ValidationError
from lognorm.parsers.base import RawRecord
from lognorm.parsers.formats import builtin_log_types
from lognorm.parsers.formats.cef import parse_cef_time, parse_extension
from lognorm.pipeline.normalizer import Normalizer

pytestmark = pytest.mark.unit

INGEST_TIME = datetime(2021, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def normalize(builtin_registry):
    """Parse a line as a log type and normalize every candidate."""
    normalizer = Normalizer()

    def _normalize(log_type_name: str, line: str, offset: int = 0):
        log_type = builtin_registry.lookup(log_type_name)
        raw = RawRecord.from_text(line, f"s3://bucket/{log_type_name}", offset, INGEST_TIME)
        candidates = list(log_type.new_parser().parse(raw))
        return [normalizer.normalize(c, log_type, raw, i) for i, c in enumerate(candidates)]

    return _normalize


class TestBuiltinDeclarations:
    def test_names_are_unique(self):
        names = [config.name for config in builtin_log_types()]
        assert len(names) == len(set(names))

    def test_schemas_validate(self):
        for config in builtin_log_types():
            config.schema.validate()


class TestZeekDNS:
    def test_normalize(self, normalize, zeek_dns_line):
        [event] = normalize("Zeek.DNS", zeek_dns_line)
        assert event.log_type == "Zeek.DNS"
        assert event.data["id_orig_h"] == "10.0.0.5"
        assert event.data["query"] == "example.com"
        assert event.data["AA"] is False
        assert event.event_time == datetime(2021, 1, 1, 0, 0, 0, 123000, tzinfo=UTC)
        assert event.indicators["p_any_ip_addresses"] == ["10.0.0.5", "8.8.8.8"]
        assert event.indicators["p_any_domain_names"] == ["example.com"]

    def test_missing_uid(self, normalize, zeek_dns_line):
        record = json.loads(zeek_dns_line)
        del record["uid"]
        with pytest.raises(ValidationError, match="uid"):
            normalize("Zeek.DNS", json.dumps(record))


class TestSuricata:
    def test_alert(self, normalize):
        line = json.dumps(
            {
                "timestamp": "2021-01-01T00:00:05.000000+0000",
                "flow_id": 1234,
                "event_type": "alert",
                "src_ip": "10.0.0.1",
                "dest_ip": "10.0.0.2",
                "proto": "TCP",
                "alert": {"signature_id": 2001, "signature": "ET TEST", "severity": 2},
            }
        )
        [event] = normalize("Suricata.Alert", line)
        assert event.data["alert"]["signature_id"] == 2001
        assert event.event_time == datetime(2021, 1, 1, 0, 0, 5, tzinfo=UTC)

    def test_dns_without_dns_object(self, normalize):
        line = json.dumps({"timestamp": "2021-01-01T00:00:05Z", "event_type": "dns"})
        with pytest.raises(ValidationError):
            normalize("Suricata.DNS", line)


class TestCloudTrail:
    def test_records_envelope(self, normalize, cloudtrail_envelope):
        events = normalize("AWS.CloudTrail", cloudtrail_envelope)
        assert [e.data["eventID"] for e in events] == ["e-1", "e-2"]
        assert events[0].row_id != events[1].row_id
        assert events[0].source_offset == events[1].source_offset == 0
        assert events[1].data["readOnly"] is False
        assert events[0].indicators["p_any_usernames"] == ["alice"]


class TestVPCFlow:
    def test_row(self, normalize, vpc_flow_line):
        [event] = normalize("AWS.VPCFlow", vpc_flow_line)
        assert event.data["srcport"] == 20641
        assert event.data["log_status"] == "OK"
        assert event.event_time == datetime.fromtimestamp(1418530010, tz=UTC)

    def test_header_line(self, builtin_registry):
        log_type = builtin_registry.lookup("AWS.VPCFlow")
        header = "version account-id interface-id srcaddr dstaddr srcport dstport protocol packets bytes start end action log-status"
        assert list(log_type.new_parser().parse(RawRecord.from_text(header, "x", 0))) == []

    def test_nodata_row(self, normalize):
        line = "2 123456789010 eni-1235b8ca123456789 - - - - - - - 1431280876 1431280934 - NODATA"
        [event] = normalize("AWS.VPCFlow", line)
        assert event.data["srcaddr"] is None
        assert event.data["log_status"] == "NODATA"


class TestGCPAuditLog:
    def test_nested_indicators(self, normalize):
        line = json.dumps(
            {
                "logName": "projects/p/logs/cloudaudit.googleapis.com%2Factivity",
                "insertId": "abc",
                "timestamp": "2021-01-01T00:00:00.5Z",
                "resource": {"type": "gce_instance"},
                "protoPayload": {
                    "@type": "type.googleapis.com/google.cloud.audit.AuditLog",
                    "methodName": "v1.compute.instances.insert",
                    "authenticationInfo": {"principalEmail": "bob@example.com"},
                    "requestMetadata": {"callerIp": "203.0.113.5"},
                    "status": {"code": 0},
                },
            }
        )
        [event] = normalize("GCP.AuditLog", line)
        assert event.data["protoPayload"]["_type"].endswith("AuditLog")
        assert event.indicators == {
            "p_any_ip_addresses": ["203.0.113.5"],
            "p_any_usernames": ["bob@example.com"],
        }


class TestOktaSystemLog:
    def test_event(self, normalize):
        line = json.dumps(
            {
                "uuid": "f790999f-fe87-467a-9880-6982a583986c",
                "published": "2021-01-01T03:00:00.000Z",
                "eventType": "user.session.start",
                "actor": {"alternateId": "carol@example.com", "type": "User"},
                "client": {"ipAddress": "198.51.100.1", "userAgent": {"browser": "CHROME"}},
                "outcome": {"result": "SUCCESS"},
            }
        )
        [event] = normalize("Okta.SystemLog", line)
        assert event.data["client"]["userAgent"]["browser"] == "CHROME"
        assert event.event_time.hour == 3


class TestApacheAccess:
    def test_combined_line(self, normalize, apache_line):
        [event] = normalize("Apache.AccessCombined", apache_line)
        assert event.data["remote_host"] == "192.0.2.10"
        assert event.data["identity"] is None
        assert event.data["status"] == 200
        assert event.data["bytes"] == 2326
        assert event.data["user_agent"].startswith("Mozilla")
        assert event.event_time == datetime(2000, 10, 10, 20, 55, 36, tzinfo=UTC)
        assert event.indicators["p_any_usernames"] == ["frank"]

    def test_garbage(self, builtin_registry):
        adapter = builtin_registry.lookup("Apache.AccessCombined").new_parser()
        with pytest.raises(ParseError):
            list(adapter.parse(RawRecord.from_text("not an access log", "x", 0)))


class TestSyslog:
    def test_with_priority(self, normalize, syslog_line):
        [event] = normalize("Syslog.RFC3164", syslog_line)
        assert event.data["priority"] == 34
        assert event.data["facility"] == 4
        assert event.data["severity"] == 2
        assert event.data["hostname"] == "mymachine"
        assert event.data["appname"] == "su"
        assert event.data["procid"] == "230"
        assert event.data["message"].startswith("'su root' failed")
        # October is later than the January ingestion time, so last year
        assert event.event_time == datetime(2020, 10, 11, 22, 14, 15, tzinfo=UTC)

    def test_without_priority(self, normalize):
        [event] = normalize("Syslog.RFC3164", "Jan  1 06:00:00 host sshd: Accepted publickey")
        assert event.data["priority"] is None
        assert event.data["procid"] is None
        assert event.event_time == datetime(2021, 1, 1, 6, 0, 0, tzinfo=UTC)

    def test_invalid_priority(self, builtin_registry):
        adapter = builtin_registry.lookup("Syslog.RFC3164").new_parser()
        raw = RawRecord.from_text("<999>Jan  1 06:00:00 host app: x", "x", 0, INGEST_TIME)
        with pytest.raises(ParseError, match="priority"):
            list(adapter.parse(raw))


class TestCEF:
    def test_event(self, normalize, cef_line):
        [event] = normalize("CEF.Event", cef_line)
        assert event.data["version"] == 0
        assert event.data["device_vendor"] == "Security"
        assert event.data["name"] == "worm successfully stopped"
        assert event.data["spt"] == 1232
        assert event.data["msg"] == "Worm stopped on host a=b"
        assert event.event_time == datetime(2021, 1, 1, 0, 5, 0, tzinfo=UTC)
        assert event.indicators["p_any_ip_addresses"] == ["10.0.0.1", "2.1.2.2"]
        assert event.indicators["p_any_usernames"] == ["jdoe"]

    def test_syslog_prefix_tolerated(self, normalize, cef_line):
        [event] = normalize("CEF.Event", "Jan 01 00:05:00 host " + cef_line)
        assert event.data["device_product"] == "threatmanager"

    def test_escaped_pipe_in_header(self, normalize):
        [event] = normalize("CEF.Event", "CEF:0|Vendor|Pro\\|duct|1|42|Name|5|")
        assert event.data["device_product"] == "Pro|duct"
        # No rt: ingestion time is the event time
        assert event.event_time == INGEST_TIME

    def test_not_cef(self, builtin_registry):
        adapter = builtin_registry.lookup("CEF.Event").new_parser()
        with pytest.raises(ParseError):
            list(adapter.parse(RawRecord.from_text("LEEF:1.0|x", "x", 0)))

    def test_extension_values_with_spaces(self):
        assert parse_extension("act=blocked a file cs1=x") == {"act": "blocked a file", "cs1": "x"}

    def test_epoch_milliseconds(self):
        assert parse_cef_time("1609459200000") == datetime(2021, 1, 1, tzinfo=UTC)
        assert parse_cef_time("sometime") == "sometime"

    def test_epoch_out_of_range_left_to_validation(self, normalize):
        huge = "9" * 400
        assert parse_cef_time(huge) == huge

        [event] = normalize("CEF.Event", f"CEF:0|Vendor|Product|1|100|Name|5|rt={huge} src=10.0.0.1")
        assert event.data["rt"] is None
        assert event.data["src"] == "10.0.0.1"
        assert event.event_time == INGEST_TIME

    def test_invalid_utf8_is_parse_error(self, builtin_registry):
        adapter = builtin_registry.lookup("CEF.Event").new_parser()
        with pytest.raises(ParseError, match="invalid UTF-8"):
            list(adapter.parse(RawRecord(b"CEF:0|V|P|1|100|n\xff|5|", "x", 0)))
