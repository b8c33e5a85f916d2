# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import json
import logging
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
import requests
from cryptography.fernet import Fernet

from datasource.config import DataSourceConfig
from datasource.config.settings import CONFIG_PATH_ENV, ENV_OVERRIDES


BASE_URL = "https://api.example.test/v1"


# =============================================================================
# ENVIRONMENT ISOLATION
# =============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove DATASOURCE_* variables and restore them after the test"""
    for name in [*ENV_OVERRIDES, CONFIG_PATH_ENV]:
        # setenv first so monkeypatch records and later undoes anything
        # load_dotenv writes during the test
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def restore_package_loggers():
    """Undo handler and level changes made to the datasource loggers"""
    package = logging.getLogger("datasource")
    remote = logging.getLogger("datasource.remote")
    saved = (package.handlers[:], package.level, package.propagate, remote.level)
    yield
    for handler in package.handlers:
        if handler not in saved[0]:
            handler.close()
    package.handlers[:] = saved[0]
    package.setLevel(saved[1])
    package.propagate = saved[2]
    remote.setLevel(saved[3])


# =============================================================================
# CLOCK
# =============================================================================

class FakeClock:
    """Millisecond clock that only moves when told to"""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# CONFIG AND STORES
# =============================================================================

@pytest.fixture
def fernet_key() -> str:
    return Fernet.generate_key().decode()


@pytest.fixture
def config(tmp_path, fernet_key):
    """Config pointing all storage at a temporary directory"""
    return DataSourceConfig(
        base_url=BASE_URL,
        storage_dir=tmp_path / "storage",
        secure_key=fernet_key,
    )


@pytest.fixture
def secure_store(config):
    from datasource.secure import SecureStore

    store = SecureStore(config.secure_db_path, key=config.secure_key)
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def local_store(config, clock):
    from datasource.local import LocalStore

    store = LocalStore(config.local_db_path, clock=clock)
    store.initialize()
    yield store
    store.close()


# =============================================================================
# HTTP FIXTURES
# =============================================================================

def make_response(
    status_code: int = 200,
    json_body: Any = None,
    text: Optional[str] = None,
    url: str = f"{BASE_URL}/test",
) -> requests.Response:
    """Build a real requests.Response without touching the network"""
    response = requests.Response()
    response.status_code = status_code
    response.url = url
    response.encoding = "utf-8"
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    elif text is not None:
        response._content = text.encode("utf-8")
        response.headers["Content-Type"] = "text/plain"
    else:
        response._content = b""
    return response


@pytest.fixture
def mock_session():
    """requests.Session stand-in answering 200 with an empty JSON object"""
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    session.request.return_value = make_response(200, json_body={})
    return session


@pytest.fixture
def http_response():
    """Factory fixture: http_response(status_code, json_body=..., text=...)"""
    return make_response
