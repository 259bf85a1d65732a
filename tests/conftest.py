"""
Pytest configuration and shared fixtures.

Contains common test fixtures and setup for all test modules.
"""

from pathlib import Path
from typing import Any, Callable, Dict, Generator, List
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.userapi.config import get_settings, reload_settings
from src.userapi.main import create_app

TEST_API_KEY = "test_api_key_123456789abc"


def build_test_app() -> FastAPI:
    """Create an application from the current environment, ignoring any config.yaml."""
    with patch('src.userapi.config.load_config_file', return_value={}):
        settings = reload_settings()
    return create_app(settings)


@pytest.fixture
def api_key() -> str:
    return TEST_API_KEY


@pytest.fixture
def auth_headers(api_key: str) -> Dict[str, str]:
    """Headers carrying the valid API key."""
    return {"X-API-Key": api_key}


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    """Request log file in a temporary directory."""
    return tmp_path / "server.log"


@pytest.fixture
def app_env(monkeypatch: pytest.MonkeyPatch, api_key: str, log_file: Path) -> None:
    """Environment for an isolated test application with an empty store."""
    monkeypatch.setenv("MYAPI_API_KEY", api_key)
    monkeypatch.setenv("USERAPI_LOG_FILE", str(log_file))
    monkeypatch.setenv("USERAPI_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("USERAPI_STORE_SEED_DEMO_USER", "false")


@pytest.fixture
def test_app(app_env: None) -> Generator[FastAPI, None, None]:
    """Fresh FastAPI application with its own user store."""
    yield build_test_app()
    get_settings.cache_clear()


@pytest.fixture
def app_factory(app_env: None) -> Generator[Callable[[], FastAPI], None, None]:
    """Builds applications on demand, after a test has adjusted the environment."""
    yield build_test_app
    get_settings.cache_clear()


@pytest.fixture
def test_client(test_app: FastAPI) -> Generator[TestClient, None, None]:
    """FastAPI test client with test configuration."""
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def valid_user() -> Dict[str, Any]:
    """Create payload that passes every check."""
    return {
        "name": "Bob",
        "email": "bob@x.com",
        "password": "Password123",
    }


@pytest.fixture
def sample_users() -> List[Dict[str, Any]]:
    return [
        {"name": "Alice", "email": "alice@example.com", "password": "alicepass1"},
        {"name": "Bob", "email": "bob@example.com", "password": "bobpass123"},
        {"name": "Carol", "email": "carol@example.com", "password": "carolpass1"},
    ]


@pytest.fixture
def populated_client(
    test_client: TestClient,
    auth_headers: Dict[str, str],
    sample_users: List[Dict[str, Any]],
) -> TestClient:
    """Test client whose store holds the sample users at indices 0..2."""
    for user in sample_users:
        response = test_client.post("/users/add", json=user, headers=auth_headers)
        assert response.status_code == 201
    return test_client
