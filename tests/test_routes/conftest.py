# tests/test_routes/conftest.py
import pytest
from httpx import ASGITransport, AsyncClient

from stocksync.core.config import get_settings
from stocksync.dependencies import get_db
from stocksync.main import app
from stocksync.services.engine_registry import EngineRegistry


@pytest.fixture
def registry(settings, session_factory):
    return EngineRegistry(settings, session_factory)


@pytest.fixture
async def client(settings, session_factory, registry):
    """HTTP client against the app with test settings, catalog DB and registry."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.state.engine_registry = registry
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.engine_registry = None
