"""API smoke tests for lognorm.

Validates that the log type endpoints respond with the expected status
codes and response structures.

Run with:
    pytest tests/integration/test_api_smoke.py -v
"""

import json

import pytest
from httpx import AsyncClient

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]

ZEEK_DNS_LINE = json.dumps(
    {
        "ts": 1609459200.5,
        "uid": "CHhAvVGS1DHFjwGM9",
        "id.orig_h": "10.0.0.1",
        "id.orig_p": 53211,
        "id.resp_h": "10.0.0.2",
        "id.resp_p": 53,
        "proto": "udp",
        "query": "example.com",
    }
)


class TestHealthEndpoint:
    async def test_health_check_returns_200(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["log_types"] > 0

    async def test_request_id_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-ID": "req-1"})
        assert response.headers["X-Request-ID"] == "req-1"


class TestLogTypeEndpoints:
    """Tests for registry listing and catalog endpoints."""

    async def test_list_log_types(self, client: AsyncClient):
        response = await client.get("/api/v1/logtypes")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == len(data["log_types"])
        names = [item["name"] for item in data["log_types"]]
        assert "Zeek.DNS" in names
        assert "AWS.CloudTrail" in names

    async def test_list_structure(self, client: AsyncClient):
        response = await client.get("/api/v1/logtypes")
        item = response.json()["log_types"][0]
        assert set(item) == {"name", "description", "reference_url", "table"}

    async def test_get_log_type(self, client: AsyncClient):
        response = await client.get("/api/v1/logtypes/Zeek.DNS")

        assert response.status_code == 200
        data = response.json()
        assert data["log_type"] == "Zeek.DNS"
        assert data["table"] == "zeek_dns"
        columns = [column["name"] for column in data["columns"]]
        assert "p_row_id" in columns
        assert "id_orig_h" in columns

    async def test_get_schema(self, client: AsyncClient):
        response = await client.get("/api/v1/logtypes/Zeek.DNS/schema")

        assert response.status_code == 200
        assert response.json()["name"] == "ZeekDNS"

    async def test_unknown_log_type_returns_404(self, client: AsyncClient):
        response = await client.get("/api/v1/logtypes/Nope.Missing")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "LogTypeNotFoundError"
        assert data["code"] == "NOT_FOUND"
        assert data["path"] == "/api/v1/logtypes/Nope.Missing"
        assert "request_id" in data


class TestParseEndpoint:
    """Tests for sample parsing."""

    async def test_parse_good_and_bad_lines(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/logtypes/Zeek.DNS/parse",
            json={"lines": [ZEEK_DNS_LINE, "not json"], "source_id": "sample"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["log_type"] == "Zeek.DNS"
        [event] = data["events"]
        assert event["p_log_type"] == "Zeek.DNS"
        assert event["p_source_id"] == "sample"
        assert event["p_source_offset"] == 0
        assert event["p_any_domain_names"] == ["example.com"]
        [error] = data["errors"]
        assert (error["offset"], error["kind"]) == (1, "parse")

    async def test_parse_missing_required_field(self, client: AsyncClient):
        line = json.dumps({"ts": 1609459200, "uid": "C1"})
        response = await client.post("/api/v1/logtypes/Zeek.DNS/parse", json={"lines": [line]})

        data = response.json()
        assert data["events"] == []
        assert data["errors"][0]["kind"] == "validation"

    async def test_parse_empty_request_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/logtypes/Zeek.DNS/parse", json={"lines": []})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_parse_unknown_log_type(self, client: AsyncClient):
        response = await client.post("/api/v1/logtypes/Nope/parse", json={"lines": ["x"]})
        assert response.status_code == 404
