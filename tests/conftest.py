"""
Shared pytest fixtures for all test modules.

IMPORTANT: C2PA_VERIFY_ENABLED is switched off before the app is imported so
route tests never touch the c2pa SDK; tests that need the verification step
patch it in explicitly.
"""

import os

os.environ["C2PA_VERIFY_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

# App import happens AFTER the environment is prepared above.
from provscan.main import app  # noqa: E402


@pytest.fixture
def client():
    """FastAPI TestClient; the lifespan opens and closes the shared HTTP session."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def enable_verification(monkeypatch):
    """Turn the optional C2PA verification step back on for one test."""
    from provscan.config import settings

    monkeypatch.setattr(settings, "c2pa_verify_enabled", True)
    return settings
