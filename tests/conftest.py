"""Pytest fixtures and configuration for lognorm tests."""

from datetime import UTC, datetime

import pytest

from lognorm.config import Settings
from lognorm.logtypes.registry import LogTypeConfig, Registry, bootstrap_registry, build_registry
from lognorm.logtypes.schema import Schema, string, timestamp
from lognorm.parsers.adapters import JSONAdapter
from lognorm.parsers.base import RawRecord, adapter_factory

INGEST_TIME = datetime(2021, 1, 1, 12, 0, 0, tzinfo=UTC)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings for tests, writing to a temporary directory."""
    return Settings(
        app_name="lognorm-test",
        debug=True,
        worker_concurrency=2,
        batch_max_events=100,
        batch_max_age_seconds=60.0,
        partition_granularity="hour",
        source_rules={"/logs/dns/": "DNS"},
        sink_backend="local",
        sink_path=str(tmp_path / "output"),
        sink_prefix="",
        redis_url="redis://localhost:6379/1",
    )


# =============================================================================
# Registry Fixtures
# =============================================================================


def dns_config(name: str = "DNS") -> LogTypeConfig:
    """Minimal DNS log type: required query and timestamp."""
    return LogTypeConfig(
        name=name,
        description="DNS queries",
        reference_url="https://example.com/dns",
        schema=Schema(
            name="DNS",
            fields=(
                string("query", "Queried name", required=True, indicators=("domain",)),
                timestamp("timestamp", "Query time", required=True, event_time=True),
                string("client", "Client address", indicators=("ip",)),
            ),
        ),
        parser_factory=adapter_factory(JSONAdapter),
    )


@pytest.fixture
def make_dns_config():
    return dns_config


@pytest.fixture
def dns_registry() -> Registry:
    return build_registry([dns_config()])


@pytest.fixture(scope="session")
def builtin_registry() -> Registry:
    return bootstrap_registry()


@pytest.fixture
def make_raw():
    """Build raw records with a fixed ingestion time."""

    def _make(text: str, source_id: str = "/logs/dns/a.log", offset: int = 0) -> RawRecord:
        return RawRecord.from_text(text, source_id, offset, INGEST_TIME)

    return _make
