"""Shared fixtures for pipeline unit tests."""

from datetime import UTC, datetime

import pytest

from lognorm.pipeline.events import NormalizedEvent
from lognorm.pipeline.normalizer import row_id


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_event():
    """Build a normalized event at a given event time."""

    def _make(
        event_time: datetime,
        offset: int = 0,
        log_type: str = "DNS",
        source_id: str = "src",
    ) -> NormalizedEvent:
        return NormalizedEvent(
            log_type=log_type,
            event_time=event_time,
            row_id=row_id(source_id, offset),
            source_id=source_id,
            source_offset=offset,
            ingest_time=datetime(2021, 1, 1, 12, tzinfo=UTC),
            data={"query": f"q{offset}.example.com"},
        )

    return _make
