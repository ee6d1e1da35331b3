import httpx
import pytest

from storesync.core.config import get_settings
from storesync.dependencies import get_db
from storesync.main import app


@pytest.fixture
async def client(session_factory, settings):
    """Async test client with the database and settings dependencies overridden."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
