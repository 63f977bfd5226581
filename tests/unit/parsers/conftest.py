"""Shared fixtures and sample lines for parser unit tests."""

import json

import pytest


@pytest.fixture
def zeek_dns_line() -> str:
    return json.dumps(
        {
            "ts": 1609459200.123,
            "uid": "CHhAvVGS1DHFjwGM9",
            "id.orig_h": "10.0.0.5",
            "id.orig_p": 53012,
            "id.resp_h": "8.8.8.8",
            "id.resp_p": 53,
            "proto": "udp",
            "trans_id": 1234,
            "query": "example.com",
            "qtype_name": "A",
            "rcode": 0,
            "AA": False,
            "answers": ["93.184.216.34"],
            "TTLs": [300.0],
            "rejected": False,
        }
    )


@pytest.fixture
def cloudtrail_envelope() -> str:
    record = {
        "eventVersion": "1.08",
        "userIdentity": {"type": "IAMUser", "userName": "alice"},
        "eventTime": "2021-01-01T00:10:00Z",
        "eventSource": "s3.amazonaws.com",
        "eventName": "GetObject",
        "awsRegion": "us-east-1",
        "sourceIPAddress": "198.51.100.7",
        "readOnly": True,
    }
    return json.dumps(
        {
            "Records": [
                {**record, "eventID": "e-1"},
                {**record, "eventID": "e-2", "eventName": "PutObject", "readOnly": False},
            ]
        }
    )


@pytest.fixture
def vpc_flow_line() -> str:
    return "2 123456789010 eni-1235b8ca123456789 172.31.16.139 172.31.16.21 20641 22 6 20 4249 1418530010 1418530070 ACCEPT OK"


@pytest.fixture
def apache_line() -> str:
    return (
        '192.0.2.10 - frank [10/Oct/2000:13:55:36 -0700] "GET /apache_pb.gif HTTP/1.0" 200 2326 '
        '"http://www.example.com/start.html" "Mozilla/4.08 [en] (Win98; I ;Nav)"'
    )


@pytest.fixture
def syslog_line() -> str:
    return "<34>Oct 11 22:14:15 mymachine su[230]: 'su root' failed for lonvick on /dev/pts/8"


@pytest.fixture
def cef_line() -> str:
    return (
        "CEF:0|Security|threatmanager|1.0|100|worm successfully stopped|10|"
        "src=10.0.0.1 dst=2.1.2.2 spt=1232 suser=jdoe msg=Worm stopped on host a\\=b "
        "rt=Jan 01 2021 00:05:00"
    )
