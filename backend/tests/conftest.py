import pytest
from fastapi.testclient import TestClient #fake http client that calls the FastAPI routes without running a real server.

from weekgrid.core.config import Settings, get_settings
from weekgrid.main import app


@pytest.fixture() #test client
def client():
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def override_settings():
    """Swap the settings the routes see, e.g. ``override_settings(cascade_max_rounds=1)``."""

    def apply(**values):
        settings = Settings(**values)
        app.dependency_overrides[get_settings] = lambda: settings
        return settings

    yield apply
    app.dependency_overrides.pop(get_settings, None)
