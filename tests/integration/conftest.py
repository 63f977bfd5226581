"""Fixtures for API tests against the in-process application."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from lognorm.logtypes.registry import bootstrap_registry


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the FastAPI app.

    ASGITransport does not run the lifespan, so the registry is installed
    on the app state here.
    """
    from lognorm.main import app

    app.state.registry = bootstrap_registry()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
