import os

import pytest

# Keep the config module quiet about the signing key during tests
os.environ.setdefault("SECRET_KEY", "test_secret")

from frontend.session.storage import MemoryStorage
from frontend.session.store import SessionStore
from frontend.api.gateway import ApiGateway
from frontend.web.server import create_app

from frontend.tests.helpers import API_BASE, api_response


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return SessionStore(storage)


@pytest.fixture
def http(mocker):
    """
    Stands in for requests.Session; tests set http.request.return_value / side_effect.
    """
    mock_http = mocker.MagicMock()
    mock_http.request.return_value = api_response(200, [])
    return mock_http


@pytest.fixture
def api(store, http):
    return ApiGateway(store, base_url=API_BASE, timeout=5, http=http)


@pytest.fixture
def app(storage, http):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test_secret",
        "API_BASE_URL": API_BASE,
        "API_TIMEOUT_SECONDS": 5,
        "SESSION_STORAGE": storage,
        "HTTP_SESSION": http,
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()
